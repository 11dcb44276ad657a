"""
Alignment repair: one translated string per source segment, in order.
"""

import logging

logger = logging.getLogger("subtrans")


def repair_alignment(translations: list[str], sources: list[str], where: str = "") -> list[str]:
    """Force ``translations`` to the length of ``sources``.

    Missing tail positions and blank entries take the source text; excess
    trailing entries are discarded.
    """
    expected = len(sources)
    received = len(translations)
    repaired = [
        text if text.strip() else sources[i]
        for i, text in enumerate(translations[:expected])
    ]
    if received < expected:
        repaired.extend(sources[received:])

    blanks = sum(1 for t in translations[:expected] if not t.strip())
    if received != expected or blanks:
        label = f" ({where})" if where else ""
        logger.warning(
            f"Repaired alignment{label}: expected {expected}, received {received}, "
            f"{blanks} blank -> source text kept where missing"
        )
    return repaired
