# citysim/core/errors.py
"""Named failures raised by the similarity and intent components."""


class CitySimilarityError(ValueError):
    """Base class for every structural/data failure in the pipeline."""


class DataFormatError(CitySimilarityError):
    """Malformed or empty session input."""


class UndefinedSimilarity(CitySimilarityError):
    """Cosine similarity requested for a zero vector."""


class InsufficientVocabulary(CitySimilarityError):
    """Neighbor lookup needs at least two cities."""


class InsufficientCities(CitySimilarityError):
    """A session with fewer than two distinct cities has no intent score."""


class UnknownCity(CitySimilarityError, KeyError):
    """City name is not part of the vocabulary."""

    def __str__(self) -> str:
        # KeyError would otherwise quote the message
        return str(self.args[0]) if self.args else ""
