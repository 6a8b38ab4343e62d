"""15-to-1 magic-state distillation.

Each round takes fifteen noisy |T> = (|0> + e^{i pi/4}|1>)/sqrt(2) states,
checks them against the [[15, 1, 3]] punctured Reed-Muller code and keeps
the output only when the four stabilizer syndromes are trivial. An input
error pattern passes undetected exactly when it is a codeword of the
[15, 11] Hamming code; odd-weight codewords flip the logical output.
The lowest-weight such patterns are the 35 weight-3 codewords, giving

    p_out ~ 35 p^3        acceptance ~ (1 - p)^15
"""

from __future__ import annotations

import functools
import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from anyonic.core.anyons import AnyonType
from anyonic.core.encoding import apply_logical_unitary, from_logical_amplitudes, qubit_encoding
from anyonic.core.errors import InsufficientInput, UnsupportedOperation
from anyonic.core.superposition import Superposition

logger = logging.getLogger(__name__)

BLOCK_SIZE = 15
MAX_ROUNDS = 5
# 35 p^3 < p below this input error rate.
THRESHOLD = 1.0 / math.sqrt(35.0)

T_PHASE = np.exp(1j * math.pi / 4)


@dataclass(frozen=True)
class MagicState:
    anyon_type: AnyonType
    fidelity: float
    error_rate: float


@dataclass(frozen=True)
class DistillationResult:
    """Outcome of one (or the last of several) distillation rounds.

    ``purified`` is the state the round emits; it is only usable when
    ``accepted`` is true. A rejected round is a normal outcome and reports
    an ``acceptance_probability`` of zero; ``pass_rate`` always holds the
    exact probability that the inputs pass every check.
    """

    purified: MagicState
    acceptance_probability: float
    pass_rate: float
    accepted: bool
    syndrome: tuple[int, ...]
    logical_error: bool
    inputs_consumed: int
    rejected_blocks: int = 0


@dataclass(frozen=True)
class TGateResult:
    state: Superposition
    gate_fidelity: float
    correction_applied: bool
    error: bool


@dataclass(frozen=True)
class ResourceEstimate:
    rounds: int
    noisy_states: int
    output_error_rate: float


# ---------------------------------------------------------------------------
# Preparation
# ---------------------------------------------------------------------------

def prepare_noisy_magic_state(error_rate: float, anyon_type: AnyonType) -> MagicState:
    """A fresh magic state whose Pauli error occurs with probability *error_rate*."""
    if not 0.0 <= error_rate <= 1.0:
        raise ValueError(f"error rate must lie in [0, 1], got {error_rate}")
    qubit_encoding(anyon_type)
    return MagicState(anyon_type, 1.0 - error_rate, error_rate)


def ideal_magic_state(anyon_type: AnyonType) -> Superposition:
    """|T> on one logical qubit encoded in anyon pairs."""
    return from_logical_amplitudes(np.array([1.0, T_PHASE]) / math.sqrt(2.0), anyon_type)


# ---------------------------------------------------------------------------
# Syndrome table
# ---------------------------------------------------------------------------

@functools.lru_cache(maxsize=None)
def parity_check_matrix() -> np.ndarray:
    """4 x 15 checks; column j is the binary expansion of j + 1."""
    H = np.array([[((j + 1) >> r) & 1 for j in range(BLOCK_SIZE)] for r in range(4)], dtype=np.uint8)
    H.setflags(write=False)
    return H


@functools.lru_cache(maxsize=None)
def _undetected_weights() -> np.ndarray:
    """Number of syndrome-free error patterns of each weight 0..15."""
    patterns = (np.arange(2 ** BLOCK_SIZE)[:, None] >> np.arange(BLOCK_SIZE)) & 1
    syndromes = (patterns @ parity_check_matrix().T) % 2
    weights = patterns[~syndromes.any(axis=1)].sum(axis=1)
    counts = np.bincount(weights, minlength=BLOCK_SIZE + 1)
    counts.setflags(write=False)
    return counts


def _weight_probabilities(p: float) -> np.ndarray:
    w = np.arange(BLOCK_SIZE + 1)
    return _undetected_weights() * p ** w * (1.0 - p) ** (BLOCK_SIZE - w)


def acceptance_probability(error_rate: float) -> float:
    """Probability that fifteen states with i.i.d. errors pass every check."""
    return float(_weight_probabilities(error_rate).sum())


def distilled_error_rate(error_rate: float) -> float:
    """Output error rate conditioned on acceptance."""
    probs = _weight_probabilities(error_rate)
    accepted = probs.sum()
    return float(probs[1::2].sum() / accepted) if accepted > 0 else 1.0


# ---------------------------------------------------------------------------
# Distillation rounds
# ---------------------------------------------------------------------------

def distill_15_to_1(rng: np.random.Generator, states: Sequence[MagicState]) -> DistillationResult:
    """Run one round on the first fifteen *states*.

    Errors on the inputs are drawn from *rng*; the syndrome is measured
    on the sampled pattern, so acceptance and logical failure are sampled
    while ``acceptance_probability`` and the purified error rate are exact.

    Raises:
        InsufficientInput: fewer than fifteen states were supplied.
    """
    if len(states) < BLOCK_SIZE:
        raise InsufficientInput(BLOCK_SIZE, len(states))
    block = states[:BLOCK_SIZE]
    anyon_type = block[0].anyon_type
    if any(s.anyon_type != anyon_type for s in block):
        raise UnsupportedOperation("magic states of different anyon types cannot be distilled together")

    rates = np.array([s.error_rate for s in block])
    errors = (rng.random(BLOCK_SIZE) < rates).astype(np.uint8)
    syndrome = tuple(int(b) for b in (parity_check_matrix() @ errors) % 2)
    accepted = not any(syndrome)
    logical_error = accepted and bool(errors.sum() % 2)

    p_in = float(rates.mean())
    p_out = distilled_error_rate(p_in)
    pass_rate = acceptance_probability(p_in)
    result = DistillationResult(
        purified=MagicState(anyon_type, 1.0 - p_out, p_out),
        acceptance_probability=pass_rate if accepted else 0.0,
        pass_rate=pass_rate,
        accepted=accepted,
        syndrome=syndrome,
        logical_error=logical_error,
        inputs_consumed=BLOCK_SIZE,
        rejected_blocks=0 if accepted else 1,
    )
    if accepted:
        logger.debug("distillation accepted: p_in=%.3e p_out=%.3e", p_in, p_out)
    else:
        logger.warning("distillation rejected: syndrome %s", syndrome)
    return result


def distill_iterative(
    rng: np.random.Generator,
    rounds: int,
    states: Sequence[MagicState],
) -> DistillationResult:
    """Feed every round's outputs into the next round.

    Round r consumes 15^(rounds - r + 1) states in blocks of fifteen. The
    output is accepted only when every block of every round passed its
    checks; ``syndrome`` is then the last block's, otherwise the first
    non-trivial one. ``pass_rate`` is the product of the per-block pass
    rates and ``inputs_consumed`` counts every noisy state used.
    """
    if not 1 <= rounds <= MAX_ROUNDS:
        raise ValueError(f"rounds must be between 1 and {MAX_ROUNDS}, got {rounds}")
    required = BLOCK_SIZE ** rounds
    if len(states) < required:
        raise InsufficientInput(required, len(states))

    stage: list[MagicState] = list(states[:required])
    result = None
    pass_rate = 1.0
    rejected = 0
    first_syndrome = None
    for r in range(1, rounds + 1):
        outputs = []
        for start in range(0, len(stage), BLOCK_SIZE):
            result = distill_15_to_1(rng, stage[start:start + BLOCK_SIZE])
            pass_rate *= result.pass_rate
            if not result.accepted:
                rejected += 1
                if first_syndrome is None:
                    first_syndrome = result.syndrome
            outputs.append(result.purified)
        logger.info("distillation round %d: %d -> %d states, p_out=%.3e",
                    r, len(stage), len(outputs), outputs[0].error_rate)
        stage = outputs

    accepted = rejected == 0
    if not accepted:
        logger.warning("iterative distillation rejected: %d of %d blocks failed",
                       rejected, sum(BLOCK_SIZE ** k for k in range(rounds)))
    return DistillationResult(
        purified=result.purified,
        acceptance_probability=pass_rate if accepted else 0.0,
        pass_rate=pass_rate,
        accepted=accepted,
        syndrome=result.syndrome if accepted else first_syndrome,
        logical_error=accepted and result.logical_error,
        inputs_consumed=required,
        rejected_blocks=rejected,
    )


# ---------------------------------------------------------------------------
# Gate injection
# ---------------------------------------------------------------------------

def apply_t_gate(
    rng: np.random.Generator,
    data: Superposition,
    magic: MagicState,
    qubit: int = 0,
    dagger: bool = False,
    min_fidelity: float = 0.99,
) -> TGateResult:
    """Consume *magic* to apply T (or T^dagger) to one logical qubit.

    The injection measurement outcome is drawn from *rng*; outcome 1 is
    fixed by an S correction, so the logical result is T either way. With
    probability ``magic.error_rate`` the consumed state carried an error
    and an extra Z lands on the qubit.

    Raises:
        UnsupportedOperation: the magic state is below *min_fidelity* or
            belongs to another anyon type.
    """
    if magic.anyon_type != data.anyon_type:
        raise UnsupportedOperation(f"{magic.anyon_type} magic state cannot act on a {data.anyon_type} state")
    if magic.fidelity < min_fidelity:
        raise UnsupportedOperation(
            f"magic state fidelity {magic.fidelity:.4f} is below the required {min_fidelity:.4f}"
        )
    phase = T_PHASE.conjugate() if dagger else T_PHASE
    state = apply_logical_unitary(data, (qubit,), np.diag([1.0, phase]))
    correction = bool(rng.random() < 0.5)
    error = bool(rng.random() < magic.error_rate)
    if error:
        state = apply_logical_unitary(state, (qubit,), np.diag([1.0, -1.0]))
    return TGateResult(state, magic.fidelity, correction, error)


# ---------------------------------------------------------------------------
# Resource estimation
# ---------------------------------------------------------------------------

def estimate_resources(error_rate: float, target_error_rate: float) -> ResourceEstimate:
    """Rounds and noisy-state count needed to reach *target_error_rate*.

    Uses the leading-order map p -> 35 p^3 per round.
    """
    if not 0.0 <= error_rate <= 1.0:
        raise ValueError(f"error rate must lie in [0, 1], got {error_rate}")
    if target_error_rate <= 0.0:
        raise ValueError(f"target error rate must be positive, got {target_error_rate}")
    p = error_rate
    if p <= target_error_rate:
        return ResourceEstimate(0, 1, p)
    if p >= THRESHOLD:
        raise ValueError(f"error rate {error_rate} is above the distillation threshold {THRESHOLD:.4f}")
    for rounds in range(1, MAX_ROUNDS + 1):
        p = 35.0 * p ** 3
        if p <= target_error_rate:
            return ResourceEstimate(rounds, BLOCK_SIZE ** rounds, p)
    raise ValueError(f"target {target_error_rate} not reachable within {MAX_ROUNDS} rounds")
