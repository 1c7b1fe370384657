"""
Data loader for lizard morphometric records.

Reads delimited capture records, normalizes sex codes to full labels and
guarantees that every observation handed to the fitting stage has a strictly
positive snout-to-vent length and weight.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Dict, Any, Optional, Iterator, Tuple, Union

import numpy as np
import pandas as pd


logger = logging.getLogger(__name__)


DEFAULT_COLUMNS = {
    "species": "spp",
    "sex": "sex",
    "sv_length": "sv_length",
    "weight": "weight",
}

DEFAULT_SEX_LABELS = {"F": "Female", "M": "Male"}


class InvalidObservationError(ValueError):
    """Raised when a record has a missing or non-positive measurement."""


class EmptySubsetError(ValueError):
    """Raised when a selection or fit is attempted on zero observations."""


@dataclass(frozen=True)
class Observation:
    """One captured specimen."""
    species: str
    sex: str
    sv_length: float
    weight: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "species": self.species,
            "sex": self.sex,
            "sv_length": self.sv_length,
            "weight": self.weight,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Observation":
        return cls(
            species=str(data["species"]),
            sex=str(data["sex"]),
            sv_length=float(data["sv_length"]),
            weight=float(data["weight"]),
        )


@dataclass(frozen=True)
class ObservationSet:
    """Immutable collection of observations with metadata."""
    name: str
    observations: Tuple[Observation, ...]
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.observations)

    def __iter__(self) -> Iterator[Observation]:
        return iter(self.observations)

    def __getitem__(self, idx: int) -> Observation:
        return self.observations[idx]

    @property
    def lengths(self) -> np.ndarray:
        return np.array([obs.sv_length for obs in self.observations], dtype=float)

    @property
    def weights(self) -> np.ndarray:
        return np.array([obs.weight for obs in self.observations], dtype=float)

    def species(self) -> List[str]:
        """Sorted unique species codes."""
        return sorted(set(obs.species for obs in self.observations))

    def sexes(self) -> List[str]:
        """Sorted unique sex labels."""
        return sorted(set(obs.sex for obs in self.observations))

    def filter(
        self,
        species: Optional[str] = None,
        sex: Optional[str] = None,
    ) -> "ObservationSet":
        """
        Select the observations matching a species code and/or sex label.

        Args:
            species: Species code to keep (all if None)
            sex: Sex label to keep (all if None)

        Returns:
            A new ObservationSet; this one is left untouched

        Raises:
            EmptySubsetError: if nothing matches
        """
        selected = tuple(
            obs for obs in self.observations
            if (species is None or obs.species == species)
            and (sex is None or obs.sex == sex)
        )
        parts = [p for p in (species, sex) if p is not None]
        name = "_".join([self.name] + parts)
        if not selected:
            raise EmptySubsetError(
                f"No observations in '{self.name}' match species={species!r}, sex={sex!r}"
            )
        logger.debug(f"Selected {len(selected)} of {len(self)} observations for {name}")
        return ObservationSet(
            name=name,
            observations=selected,
            metadata={**self.metadata, "filtered_species": species, "filtered_sex": sex},
        )

    def to_dataframe(self) -> pd.DataFrame:
        """Convert observations to a pandas DataFrame."""
        return pd.DataFrame(
            [obs.to_dict() for obs in self.observations],
            columns=["species", "sex", "sv_length", "weight"],
        )

    @classmethod
    def from_arrays(
        cls,
        lengths,
        weights,
        species: str = "UNK",
        sex: str = "Unknown",
        name: str = "synthetic",
    ) -> "ObservationSet":
        """Build a set from parallel length/weight sequences."""
        lengths = np.asarray(lengths, dtype=float)
        weights = np.asarray(weights, dtype=float)
        if lengths.shape != weights.shape:
            raise ValueError("lengths and weights must be the same shape")
        observations = tuple(
            Observation(species, sex, float(l), float(w))
            for l, w in zip(lengths, weights)
        )
        return cls(name=name, observations=observations)


class LizardDataLoader:
    """
    Loader for lizard capture records.

    Handles column mapping, sex label normalization and validation of
    measurements before anything reaches the fitting stage.
    """

    def __init__(
        self,
        columns: Optional[Dict[str, str]] = None,
        sex_labels: Optional[Dict[str, str]] = None,
        invalid_policy: str = "drop",
    ):
        """
        Initialize data loader.

        Args:
            columns: Mapping of field name to column header in the file
            sex_labels: Mapping of single-letter sex code to full label
            invalid_policy: 'drop' to discard bad rows, 'raise' to reject the file
        """
        if invalid_policy not in ("drop", "raise"):
            raise ValueError(f"Unknown invalid_policy: {invalid_policy}")
        self.columns = {**DEFAULT_COLUMNS, **(columns or {})}
        self.sex_labels = {
            str(code).strip().upper(): label
            for code, label in (sex_labels or DEFAULT_SEX_LABELS).items()
        }
        self.invalid_policy = invalid_policy

    def load(self, path: Union[str, Path], sep: str = ",") -> ObservationSet:
        """
        Load and clean a delimited file.

        Args:
            path: Path to the records file
            sep: Field delimiter

        Returns:
            ObservationSet of valid observations
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Data file not found: {path}")

        raw = pd.read_csv(path, sep=sep)
        logger.info(f"Read {len(raw)} records from {path}")

        observations = self.from_dataframe(raw, name=path.stem)
        return ObservationSet(
            name=observations.name,
            observations=observations.observations,
            metadata={**observations.metadata, "source_file": str(path)},
        )

    def from_dataframe(self, raw: pd.DataFrame, name: str = "lizards") -> ObservationSet:
        """Clean an already-loaded frame into an ObservationSet."""
        missing = [col for col in self.columns.values() if col not in raw.columns]
        if missing:
            raise KeyError(f"Missing required columns: {missing}")

        df = raw[list(self.columns.values())].rename(
            columns={v: k for k, v in self.columns.items()}
        )
        df["species"] = df["species"].astype("string").str.strip()
        df["sex"] = self.normalize_sex(df["sex"])
        df["sv_length"] = pd.to_numeric(df["sv_length"], errors="coerce")
        df["weight"] = pd.to_numeric(df["weight"], errors="coerce")

        incomplete = df.isna().any(axis=1)
        non_finite = ~incomplete & ~(
            np.isfinite(df["sv_length"].astype(float)) & np.isfinite(df["weight"].astype(float))
        )
        non_positive = ~incomplete & ~non_finite & ((df["sv_length"] <= 0) | (df["weight"] <= 0))

        if self.invalid_policy == "raise" and (
            incomplete.any() or non_finite.any() or non_positive.any()
        ):
            raise InvalidObservationError(
                f"{int(incomplete.sum())} incomplete, {int(non_finite.sum())} non-finite and "
                f"{int(non_positive.sum())} non-positive records in '{name}'"
            )
        if incomplete.any():
            logger.warning(f"Dropping {int(incomplete.sum())} records with missing values")
        if non_finite.any():
            logger.warning(
                f"Dropping {int(non_finite.sum())} records with non-finite length or weight"
            )
        if non_positive.any():
            logger.warning(
                f"Dropping {int(non_positive.sum())} records with non-positive length or weight"
            )

        clean = df[~(incomplete | non_finite | non_positive)]
        observations = tuple(
            Observation(
                species=str(row.species),
                sex=str(row.sex),
                sv_length=float(row.sv_length),
                weight=float(row.weight),
            )
            for row in clean.itertuples(index=False)
        )
        logger.info(f"Kept {len(observations)} valid observations")

        return ObservationSet(
            name=name,
            observations=observations,
            metadata={
                "records_read": len(raw),
                "dropped_incomplete": int(incomplete.sum()),
                "dropped_non_finite": int(non_finite.sum()),
                "dropped_non_positive": int(non_positive.sum()),
            },
        )

    def normalize_sex(self, codes: pd.Series) -> pd.Series:
        """Map single-letter sex codes to labels; unknown codes become missing."""
        codes = codes.astype("string").str.strip().str.upper()
        return codes.map(self.sex_labels)
