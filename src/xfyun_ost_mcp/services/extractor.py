from __future__ import annotations

import json
import logging
from typing import Any

from xfyun_ost_mcp.types import (
    LatticeEntry,
    RecognitionResult,
    Run,
    Sentence,
    WordAttribute,
    WordCandidate,
    WordSlot,
)

logger = logging.getLogger(__name__)


def extract(result: RecognitionResult | None) -> str:
    """Concatenates the top-ranked candidate of every word slot, in order."""
    if result is None:
        return ""

    parts: list[str] = []
    for entry in result.lattice:
        if entry.sentence is None:
            continue
        for run in entry.sentence.runs:
            for slot in run.slots:
                if slot.candidates:
                    parts.append(slot.candidates[0].text)
    return "".join(parts)


def parse_recognition_result(payload: object) -> RecognitionResult:
    if not isinstance(payload, dict):
        return RecognitionResult()
    return RecognitionResult(
        lattice=_parse_lattice(payload.get("lattice")),
        lattice2=_parse_lattice(payload.get("lattice2")),
        file_length=_as_int(payload.get("file_length")),
    )


def _parse_lattice(items: object) -> list[LatticeEntry]:
    if not isinstance(items, list):
        return []
    return [_parse_entry(item) for item in items if isinstance(item, dict)]


def _parse_entry(item: dict[str, Any]) -> LatticeEntry:
    best = item.get("json_1best")
    # Some responses carry json_1best as an encoded string.
    if isinstance(best, str):
        try:
            best = json.loads(best)
        except json.JSONDecodeError:
            logger.warning("Skipping lattice entry with undecodable json_1best")
            best = None

    sentence = None
    if isinstance(best, dict) and isinstance(best.get("st"), dict):
        sentence = _parse_sentence(best["st"])

    speaker = item.get("spk")
    return LatticeEntry(
        sentence=sentence,
        begin_ms=_as_int(item.get("begin")),
        end_ms=_as_int(item.get("end")),
        speaker=str(speaker) if speaker is not None else None,
    )


def _parse_sentence(st: dict[str, Any]) -> Sentence:
    runs = st.get("rt")
    role = st.get("rl")
    return Sentence(
        runs=[_parse_run(rt) for rt in runs if isinstance(rt, dict)] if isinstance(runs, list) else [],
        begin_ms=_as_int(st.get("bg")),
        end_ms=_as_int(st.get("ed")),
        speaker_role=str(role) if role is not None else None,
    )


def _parse_run(rt: dict[str, Any]) -> Run:
    slots = rt.get("ws")
    if not isinstance(slots, list):
        return Run()
    return Run(slots=[_parse_slot(ws) for ws in slots if isinstance(ws, dict)])


def _parse_slot(ws: dict[str, Any]) -> WordSlot:
    candidates = ws.get("cw")
    parsed: list[WordCandidate] = []
    if isinstance(candidates, list):
        for cw in candidates:
            if not isinstance(cw, dict):
                continue
            parsed.append(
                WordCandidate(
                    text=str(cw.get("w") or ""),
                    confidence=_as_float(cw.get("wc")),
                    attribute=WordAttribute.parse(cw.get("wp")),
                )
            )
    return WordSlot(
        candidates=parsed,
        begin_frame=_as_int(ws.get("wb")),
        end_frame=_as_int(ws.get("we")),
    )


def _as_int(value: object) -> int | None:
    try:
        return int(str(value)) if value is not None else None
    except (TypeError, ValueError):
        return None


def _as_float(value: object) -> float | None:
    try:
        return float(str(value)) if value is not None else None
    except (TypeError, ValueError):
        return None
