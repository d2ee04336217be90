"""Word-count budget check that picks how much machinery a document needs."""

from __future__ import annotations

from cardsmith.models.pipeline import SizeClass

DEFAULT_REJECT_FLOOR = 50
DEFAULT_SINGLE_PASS_CEILING = 3000


def classify_size(
    word_count: int,
    *,
    reject_floor: int = DEFAULT_REJECT_FLOOR,
    single_pass_ceiling: int = DEFAULT_SINGLE_PASS_CEILING,
) -> SizeClass:
    """Map *word_count* to ``REJECT``, ``SINGLE_PASS`` or ``CHUNKED``.

    - ``word_count < reject_floor``: too little text to hold a coherent Q&A
      pair, so no extraction call is spent on it.
    - ``reject_floor <= word_count <= single_pass_ceiling``: fits one call.
    - anything larger is split by the semantic chunker.
    """
    if word_count < reject_floor:
        return SizeClass.REJECT
    if word_count <= single_pass_ceiling:
        return SizeClass.SINGLE_PASS
    return SizeClass.CHUNKED
