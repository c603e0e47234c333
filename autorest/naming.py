"""English plural/singular helpers for collection segments and XML element names."""

_IRREGULAR_PLURALS = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
}
_IRREGULAR_SINGULARS = {plural: singular for singular, plural in _IRREGULAR_PLURALS.items()}

_SIBILANT_ENDINGS = ("ss", "x", "z", "ch", "sh")
_VOWELS = "aeiou"


def pluralize(word: str) -> str:
    """Plural of a lowercase English noun, e.g. ``user`` -> ``users``.

    Words that already look plural are returned unchanged.
    """
    if not word:
        return word
    if word in _IRREGULAR_PLURALS:
        return _IRREGULAR_PLURALS[word]
    if word in _IRREGULAR_SINGULARS:
        return word
    if word.endswith("s") and not word.endswith("ss"):
        return word
    if word.endswith(_SIBILANT_ENDINGS):
        return word + "es"
    if word.endswith("y") and len(word) > 1 and word[-2] not in _VOWELS:
        return word[:-1] + "ies"
    return word + "s"


def singularize(word: str):
    """Singular of a plural English noun, or None if ``word`` does not look plural."""
    if word in _IRREGULAR_SINGULARS:
        return _IRREGULAR_SINGULARS[word]
    if word.endswith("ies") and len(word) > 3:
        return word[:-3] + "y"
    for ending in _SIBILANT_ENDINGS:
        if word.endswith(ending + "es") and len(word) > len(ending) + 2:
            return word[:-2]
    if word.endswith("s") and not word.endswith("ss") and len(word) > 1:
        return word[:-1]
    return None
