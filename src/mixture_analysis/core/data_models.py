"""
Data models for mixture estimation input.

This module defines the data structures for:
- Observation: a single (id, successes, trials) record
- ObservationSet: the immutable, column-wise observation store
"""

from collections.abc import Hashable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Self

import numpy as np
from numpy.typing import ArrayLike, NDArray
from pydantic import BaseModel, ConfigDict, Field, model_validator

from mixture_analysis.core.exceptions import InputError
from mixture_analysis.core.utils import frozen_array


def _as_object_array(values: Iterable[Hashable]) -> NDArray[np.object_]:
    """Build a 1D object array without numpy unpacking tuple ids."""
    values = list(values)
    result = np.empty(len(values), dtype=object)
    for i, value in enumerate(values):
        result[i] = value
    return result


class Observation(BaseModel):
    """
    One binomial count record.

    Attributes:
        id: Caller-supplied identifier.
        successes: Number of successes, >= 0.
        trials: Number of trials, >= successes.
    """

    model_config = ConfigDict(frozen=True)

    id: Hashable
    successes: int = Field(..., ge=0)
    trials: int = Field(..., ge=0)

    @model_validator(mode="after")
    def _validate_successes_le_trials(self) -> "Observation":
        if self.successes > self.trials:
            raise ValueError(
                f"successes ({self.successes}) must be <= "
                f"trials ({self.trials})"
            )
        return self

    @property
    def rate(self) -> float:
        """Raw success rate; NaN when there are no trials."""
        if self.trials == 0:
            return float("nan")
        return self.successes / self.trials


@dataclass(frozen=True, eq=False)
class ObservationSet:
    """
    Immutable collection of binomial observations, stored column-wise.

    Zero-trial records are accepted here so that they can still be scored
    by the posterior module; fitting rejects them.

    Attributes:
        ids: Observation identifiers, shape (n_observations,).
        successes: Success counts, shape (n_observations,).
        trials: Trial counts, shape (n_observations,).
    """

    ids: NDArray[np.object_]
    successes: NDArray[np.int64]
    trials: NDArray[np.int64]

    def __post_init__(self) -> None:
        """Validate and freeze the arrays."""
        ids = _as_object_array(self.ids)
        successes = np.asarray(self.successes)
        trials = np.asarray(self.trials)

        if successes.ndim != 1 or trials.ndim != 1:
            raise InputError("successes and trials must be 1D")
        if not (len(ids) == len(successes) == len(trials)):
            raise InputError(
                f"ids, successes and trials must have the same length, got "
                f"{len(ids)}, {len(successes)} and {len(trials)}"
            )
        for name, values in (("successes", successes), ("trials", trials)):
            if len(values) > 0 and not np.all(
                np.equal(np.mod(values, 1), 0)
            ):
                raise InputError(f"{name} must be integers")

        successes = successes.astype(np.int64)
        trials = trials.astype(np.int64)

        negative = np.flatnonzero((successes < 0) | (trials < 0))
        if len(negative) > 0:
            ix = int(negative[0])
            raise InputError(
                f"Observation {ids[ix]!r} has negative counts "
                f"(successes={successes[ix]}, trials={trials[ix]})",
                observation_id=ids[ix],
            )
        too_many = np.flatnonzero(successes > trials)
        if len(too_many) > 0:
            ix = int(too_many[0])
            raise InputError(
                f"Observation {ids[ix]!r} has successes ({successes[ix]}) "
                f"> trials ({trials[ix]})",
                observation_id=ids[ix],
            )
        if len(set(ids.tolist())) != len(ids):
            raise InputError("Observation ids must be unique")

        object.__setattr__(self, "ids", frozen_array(ids))
        object.__setattr__(self, "successes", frozen_array(successes))
        object.__setattr__(self, "trials", frozen_array(trials))

    @classmethod
    def from_records(cls, records: Iterable[Observation]) -> Self:
        """Build a set from Observation records, keeping their order."""
        records = list(records)
        return cls(
            ids=_as_object_array([r.id for r in records]),
            successes=np.array([r.successes for r in records], dtype=np.int64),
            trials=np.array([r.trials for r in records], dtype=np.int64),
        )

    @classmethod
    def from_arrays(
        cls,
        successes: ArrayLike,
        trials: ArrayLike,
        ids: Sequence[Hashable] | None = None,
    ) -> Self:
        """
        Build a set from count arrays.

        Args:
            successes: Success counts.
            trials: Trial counts.
            ids: Identifiers. Defaults to positional indices 0..n-1.
        """
        successes_arr = np.asarray(successes)
        if ids is None:
            ids = list(range(len(successes_arr)))
        return cls(
            ids=_as_object_array(ids),
            successes=successes_arr,
            trials=np.asarray(trials),
        )

    def __len__(self) -> int:
        return len(self.ids)

    def __iter__(self) -> Iterator[Observation]:
        for obs_id, s, n in zip(self.ids, self.successes, self.trials):
            yield Observation(id=obs_id, successes=int(s), trials=int(n))

    @property
    def n_observations(self) -> int:
        """Number of observations."""
        return len(self.ids)

    @property
    def rates(self) -> NDArray[np.float64]:
        """Raw success rates; NaN where trials == 0."""
        with np.errstate(divide="ignore", invalid="ignore"):
            rates: NDArray[np.float64] = np.where(
                self.trials > 0,
                self.successes / np.maximum(self.trials, 1),
                np.nan,
            )
        return rates

    def subset(self, mask: NDArray[np.bool_]) -> "ObservationSet":
        """Observations selected by a boolean mask, order preserved."""
        return ObservationSet(
            ids=self.ids[mask],
            successes=self.successes[mask],
            trials=self.trials[mask],
        )

    def validate_for_fitting(self) -> None:
        """
        Check the set can be fitted.

        Raises:
            InputError: If the set is empty or contains zero-trial records.
        """
        if self.n_observations == 0:
            raise InputError("Cannot fit an empty observation set")
        zero = np.flatnonzero(self.trials == 0)
        if len(zero) > 0:
            obs_id = self.ids[int(zero[0])]
            raise InputError(
                f"Observation {obs_id!r} has zero trials and cannot be "
                f"used for fitting",
                observation_id=obs_id,
            )
