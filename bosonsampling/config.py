from dataclasses import dataclass

__all__ = ["SimulationConfig", "DEFAULT_CONFIG", "resolve_config"]


@dataclass(frozen=True)
class SimulationConfig:
    """
    Numerical knobs shared by the engine.

    Parameters:
        unitarity_atol (float): Largest accepted entry of ``U U^† - I``.
        gram_atol (float): Tolerance for the Hermitian / unit-diagonal /
            PSD checks of a Gram matrix.
        probability_atol (float): Tolerance on probability normalisation and
            on rounding negatives produced by the FFT inversion.
        ryser_max_n (int): Largest matrix handled by the compiled Ryser
            kernel; bigger ones go through the torch Glynn kernel.
        glynn_chunk_elements (int): Upper bound on ``batch * 2^(n-1) * n``
            complex entries materialised at once by the batched Glynn kernel.
    """
    unitarity_atol: float = 1e-8
    gram_atol: float = 1e-8
    probability_atol: float = 1e-8
    ryser_max_n: int = 12
    glynn_chunk_elements: int = 1 << 22


DEFAULT_CONFIG = SimulationConfig()


def resolve_config(config: SimulationConfig | None) -> SimulationConfig:
    return DEFAULT_CONFIG if config is None else config
