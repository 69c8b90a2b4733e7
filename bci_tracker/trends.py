"""
Trending keyword statistics over a fixed BCI vocabulary.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from bci_tracker.constants import DEFAULT_TRENDING_TOP_N
from bci_tracker.models import KeywordCount

TREND_VOCABULARY: Tuple[str, ...] = (
    "brain-computer interface", "BCI", "neural interface", "neuroprosthesis", "EEG",
    "intracortical", "neurostimulation", "neuromodulation", "brain-machine interface",
    "neural decoding", "spike sorting", "motor imagery", "P300", "SSVEP",
    "deep brain stimulation", "DBS", "electrocorticography", "ECoG", "fNIRS",
    "Neuralink", "Synchron", "Blackrock", "Paradromics", "FDA", "clinical trial",
    "speech decoding", "handwriting", "spinal cord", "paralysis", "prosthetic",
    "invasive", "non-invasive", "implant", "electrode", "neural network",
    "machine learning", "deep learning", "signal processing", "real-time",
    "closed-loop", "brain-spine", "optogenetics", "neuroplasticity", "rehabilitation",
)


def count_keywords(
    texts: Iterable[Tuple[Optional[str], Optional[str]]],
    vocabulary: Sequence[str] = TREND_VOCABULARY,
    top_n: int = DEFAULT_TRENDING_TOP_N,
) -> List[KeywordCount]:
    """
    Rank vocabulary terms by the number of records that mention them.

    Args:
        texts: (title, abstract) pairs, one per record.
        vocabulary: Terms to count, in tie-break order.
        top_n: Maximum number of terms returned. Non-positive means the default.

    Returns:
        Terms with at least one mention, most frequent first.
    """
    if not top_n or top_n < 1:
        top_n = DEFAULT_TRENDING_TOP_N

    needles = [term.lower() for term in vocabulary]
    counts = [0] * len(needles)

    for title, abstract in texts:
        text = f"{title or ''} {abstract or ''}".lower()
        for i, needle in enumerate(needles):
            # a record counts once per term, however often the term appears
            if needle in text:
                counts[i] += 1

    # sorted() is stable, so equal counts keep vocabulary order
    ranked = sorted(
        (KeywordCount(keyword=term, count=count)
         for term, count in zip(vocabulary, counts) if count > 0),
        key=lambda kc: kc.count,
        reverse=True,
    )
    return ranked[:top_n]
