"""Randomised checks over generated documents."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import List, Optional

import pytest

from xmlcheck.diagnostics import Verdict
from xmlcheck.engine import validate_bytes


TEXTS = ["hello", "a &amp; b", "&#169; 2024", "x &lt; y", "café", "  \n  ", "it's \"quoted\""]
MISC = ["<!-- <not-a-tag> -->", "<![CDATA[<x>&</y>]]>", "<?note some data?>"]
ATTRIBUTE_VALUES = ["1", "a &amp; b", "&#x41;", "x > y", "it's"]


@dataclass
class Piece:
    text: str
    partner: Optional[int] = None


@dataclass
class Generated:
    pieces: List[Piece] = field(default_factory=list)
    pairs: List[tuple] = field(default_factory=list)

    def render(self, skip: Optional[int] = None) -> str:
        return "".join(piece.text for index, piece in enumerate(self.pieces) if index != skip)

    def byte_offset(self, index: int, skip: int) -> int:
        return sum(
            len(piece.text.encode("utf-8"))
            for position, piece in enumerate(self.pieces[:index])
            if position != skip
        )


def _attributes(rng: random.Random) -> str:
    names = rng.sample(["id", "kind", "lang", "ref"], rng.randint(0, 3))
    parts = []
    for name in names:
        value = rng.choice(ATTRIBUTE_VALUES)
        quote = "'" if '"' in value or rng.random() < 0.5 else '"'
        if quote in value:
            quote = '"'
        parts.append(f" {name}={quote}{value}{quote}")
    return "".join(parts)


def generate(rng: random.Random) -> Generated:
    doc = Generated()
    counter = [0]

    def element(depth: int) -> None:
        counter[0] += 1
        name = f"e{counter[0]}"
        attrs = _attributes(rng)
        if depth >= 4 or rng.random() < 0.25:
            doc.pieces.append(Piece(f"<{name}{attrs}/>"))
            return
        start = len(doc.pieces)
        doc.pieces.append(Piece(f"<{name}{attrs}>"))
        for _ in range(rng.randint(0, 4)):
            roll = rng.random()
            if roll < 0.5:
                element(depth + 1)
            elif roll < 0.8:
                doc.pieces.append(Piece(rng.choice(TEXTS)))
            else:
                doc.pieces.append(Piece(rng.choice(MISC)))
        end = len(doc.pieces)
        doc.pieces.append(Piece(f"</{name}>"))
        doc.pairs.append((start, end))

    if rng.random() < 0.5:
        doc.pieces.append(Piece('<?xml version="1.0" encoding="UTF-8"?>\n'))
    element(0)
    if rng.random() < 0.5:
        doc.pieces.append(Piece("\n<!-- trailer -->\n"))
    return doc


SEEDS = range(60)


@pytest.mark.parametrize("seed", SEEDS)
def test_generated_documents_are_valid(seed: int) -> None:
    doc = generate(random.Random(seed))
    result = validate_bytes(doc.render().encode("utf-8"))
    assert result.verdict is Verdict.VALID, result.diagnostics
    assert result.diagnostics == ()


@pytest.mark.parametrize("seed", SEEDS)
def test_removing_one_tag_is_caught_at_or_before_its_partner(seed: int) -> None:
    rng = random.Random(seed)
    doc = generate(rng)
    if not doc.pairs:
        doc = generate(random.Random(seed + 1000))
    if not doc.pairs:
        pytest.skip("generated document has no element with an end tag")

    start, end = rng.choice(doc.pairs)
    removed, partner = (start, end) if rng.random() < 0.5 else (end, start)
    data = doc.render(skip=removed).encode("utf-8")
    partner_offset = doc.byte_offset(partner, skip=removed)

    result = validate_bytes(data)
    assert result.verdict is Verdict.PARSE_ERROR
    offsets = [d.location.offset for d in result.diagnostics if d.location is not None]
    assert any(offset <= partner_offset for offset in offsets)


@pytest.mark.parametrize("seed", range(20))
def test_validation_is_deterministic(seed: int) -> None:
    rng = random.Random(seed)
    doc = generate(rng)
    data = doc.render().encode("utf-8")
    if rng.random() < 0.5:
        data = data[: rng.randrange(len(data))]
    assert validate_bytes(data) == validate_bytes(data)
