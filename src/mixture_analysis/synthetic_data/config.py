from dataclasses import dataclass, field

from omegaconf import MISSING


@dataclass
class ComponentSpec:
    """Configuration for one true mixture component.

    Each observation draws p ~ Beta(alpha, beta), then s ~ Binomial(trials, p).

    Attributes:
        alpha: Beta shape α > 0.
        beta: Beta shape β > 0.
        trials: Number of trials per observation.
        size: Number of observations drawn from this component.
    """

    alpha: float = MISSING
    beta: float = MISSING
    trials: int = MISSING
    size: int = MISSING

    def __post_init__(self) -> None:
        if self.alpha <= 0 or self.beta <= 0:
            raise ValueError(
                f"alpha and beta must be > 0, got {self.alpha}, {self.beta}"
            )
        if self.trials < 1:
            raise ValueError(f"trials must be >= 1, got {self.trials}")
        if self.size < 1:
            raise ValueError(f"size must be >= 1, got {self.size}")


@dataclass
class GenerationConfig:
    """Complete configuration for generating a synthetic dataset.

    Attributes:
        components: True components, in label order.
        shuffle: If True, observations from different components are
            interleaved; otherwise they appear grouped by label.
        random_seed: Seed for reproducibility.
    """

    components: list[ComponentSpec] = field(default_factory=list)
    shuffle: bool = True

    # Reproducibility
    random_seed: int = MISSING

    def __post_init__(self) -> None:
        if len(self.components) < 1:
            raise ValueError("Must have at least 1 component")

    @property
    def n_observations(self) -> int:
        return sum(c.size for c in self.components)
