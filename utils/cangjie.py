from typing import Dict, List

CANGJIE_COMPONENTS: Dict[str, Dict[str, str]] = {
    "A": {"glyph": "日", "name": "sun"},
    "B": {"glyph": "月", "name": "moon"},
    "C": {"glyph": "金", "name": "metal"},
    "D": {"glyph": "木", "name": "wood"},
    "E": {"glyph": "水", "name": "water"},
    "F": {"glyph": "火", "name": "fire"},
    "G": {"glyph": "土", "name": "earth"},
    "H": {"glyph": "竹", "name": "bamboo"},
    "I": {"glyph": "戈", "name": "spear"},
    "J": {"glyph": "十", "name": "ten/cross"},
    "K": {"glyph": "大", "name": "big"},
    "L": {"glyph": "中", "name": "middle"},
    "M": {"glyph": "一", "name": "one"},
    "N": {"glyph": "弓", "name": "bow"},
    "O": {"glyph": "人", "name": "person"},
    "P": {"glyph": "心", "name": "heart"},
    "Q": {"glyph": "手", "name": "hand"},
    "R": {"glyph": "口", "name": "mouth"},
    "S": {"glyph": "尸", "name": "corpse"},
    "T": {"glyph": "廿", "name": "twenty"},
    "U": {"glyph": "山", "name": "mountain"},
    "V": {"glyph": "女", "name": "woman"},
    "W": {"glyph": "田", "name": "field"},
    "X": {"glyph": "難", "name": "difficulty"},
    "Y": {"glyph": "卜", "name": "divination"},
    "Z": {"glyph": "重", "name": "heavy"},
}


def decompose_code(code: str) -> List[Dict[str, str]]:
    """Split a Cangjie code into its component radicals, one entry per letter."""
    segments: List[Dict[str, str]] = []
    for letter in (code or "").upper():
        if letter.isspace():
            continue
        component = CANGJIE_COMPONENTS.get(letter)
        segments.append({
            "letter": letter,
            "glyph": component["glyph"] if component else "?",
            "name": component["name"] if component else "Unknown component",
        })
    return segments
