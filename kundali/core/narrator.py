# kundali/core/narrator.py
"""
Plain-text narrative over a finished chart document (``Chart.to_dict()``).

Pure formatting: nothing here computes astronomy, and the input document is
the only contract with the chart core.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping

from kundali.core.ashtakavarga import strong_signs
from kundali.core.constants import AV_STRONG_SIGN_BINDUS, SIGNS

__all__ = ["render_narrative", "ordinal"]


def ordinal(n: int) -> str:
    n = int(n)
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def _planet(doc: Mapping[str, Any], name: str) -> Dict[str, Any]:
    for p in doc["planets"]:
        if p["name"] == name:
            return p
    raise KeyError(f"chart document has no position for {name}")


def _section(title: str, lines: List[str]) -> str:
    return "\n".join([title, "-" * len(title), *lines])


def render_narrative(doc: Mapping[str, Any]) -> str:
    meta = doc["meta"]
    pan = doc["panchanga"]
    vargas = doc["vargas"]
    asc = _planet(doc, "Ascendant")
    moon = _planet(doc, "Moon")
    name = meta.get("fullName") or "The native"

    sections = [
        _section("I. Panchanga & Birth Context", [
            f"{name} was born on a {pan['vara']}, in the {ordinal(pan['tithi'])} tithi "
            f"({pan['paksha']} {pan['tithiName']}).",
            f"The Moon was in {moon['nakshatra']}, {ordinal(moon['pada'])} pada.",
            f"Yoga: {ordinal(pan['yoga'])} ({pan['yogaName']}). "
            f"Karana: {ordinal(pan['karana'])} ({pan['karanaName']}).",
        ]),
        _section("II. Ascendant & Moon", [
            f"The Ascendant rises in {asc['sign']} at {asc['dms']}; "
            f"in the Navamsha (D9) it falls in {vargas['D9']['Ascendant']}.",
            f"The Moon is placed in {moon['sign']} at {moon['dms']}.",
        ]),
    ]

    placements = []
    for p in doc["planets"]:
        if p["name"] == "Ascendant":
            continue
        placements.append(
            f"{p['name']}: {p['sign']} {p['dms']}, {p['nakshatra']} pada {p['pada']}; "
            f"D9 {vargas['D9'][p['name']]}."
        )
    sections.append(_section("III. Planetary Placements", placements))

    sections.append(_section("IV. Divisional Charts", [
        f"Hora (D2): Sun in {vargas['D2']['Sun']}, Moon in {vargas['D2']['Moon']}.",
        f"Drekkana (D3) Ascendant: {vargas['D3']['Ascendant']}. "
        f"Chaturthamsha (D4) Ascendant: {vargas['D4']['Ascendant']}.",
        f"Saptamsha (D7) Ascendant: {vargas['D7']['Ascendant']}. "
        f"Dashamsha (D10) Ascendant: {vargas['D10']['Ascendant']}.",
    ]))

    yogas = doc.get("yogas") or []
    if yogas:
        sections.append(_section("V. Yogas & Doshas", [f"* {y['name']}: {y['description']}" for y in yogas]))
    else:
        sections.append(_section("V. Yogas & Doshas", ["No Pancha Mahapurusha, Gajakesari, Kemadruma or Kaal Sarpa pattern is present."]))

    sarva = doc["ashtakavarga"]["sarva"]
    strong = [f"* {sign}: {pts} bindus" for sign, pts in strong_signs(sarva)]
    weakest = min(range(12), key=lambda i: sarva[i])
    av_lines = strong or [f"No sign reaches {AV_STRONG_SIGN_BINDUS} bindus."]
    av_lines.append(f"Weakest sign: {SIGNS[weakest]} ({sarva[weakest]} bindus). Total: {sum(sarva)}.")
    sections.append(_section("VI. Ashtakavarga", av_lines))

    dashas = doc["dashas"]
    first = dashas[0]
    dasha_lines = [
        f"Born in the {first['lord']} mahadasha with {first['durationYears']:.1f} years remaining "
        f"(until {first['endDate']})."
    ]
    dasha_lines += [f"* {d['lord']}: {d['startDate']} to {d['endDate']}" for d in dashas[1:]]
    sections.append(_section("VII. Vimshottari Dasha", dasha_lines))

    return "\n\n".join(sections) + "\n"
