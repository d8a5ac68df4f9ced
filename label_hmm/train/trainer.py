"""
Iterative Baum-Welch training with convergence monitoring.

BaumWelchTrainer repeatedly applies a one-step re-estimation rule until the
corpus log-likelihood stops improving or an iteration limit is reached.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .baum_welch import Corpus, train_one_step, train_one_step_simple
from ..config import get_config
from ..exceptions import LabelHMMError, ModelTrainingError
from ..hmm.forward_backward import total_log_likelihood
from ..hmm.model import HiddenMarkovModel
from ..logger import get_logger

logger = get_logger(__name__)

UpdateRule = Callable[[HiddenMarkovModel, Corpus], HiddenMarkovModel]

VARIANTS: Dict[str, UpdateRule] = {
    'standard': train_one_step,
    'simple': train_one_step_simple,
}


@dataclass
class TrainingHistory:
    """
    Outcome of a training run.

    Attributes:
        model: The final re-estimated model
        converged: Whether the improvement fell below the tolerance
        log_likelihood_history: Corpus log-likelihood before training and after every iteration
        improvement_history: Log-likelihood change per iteration
    """
    model: HiddenMarkovModel
    converged: bool = False
    log_likelihood_history: List[float] = field(default_factory=list)
    improvement_history: List[float] = field(default_factory=list)

    @property
    def iterations(self) -> int:
        return len(self.improvement_history)

    @property
    def initial_log_likelihood(self) -> float:
        return self.log_likelihood_history[0]

    @property
    def final_log_likelihood(self) -> float:
        return self.log_likelihood_history[-1]


class BaumWelchTrainer:
    """
    Runs Baum-Welch until convergence.

    Defaults for every parameter come from the ``training`` configuration
    section.
    """

    def __init__(self,
                 max_iterations: Optional[int] = None,
                 convergence_tolerance: Optional[float] = None,
                 variant: Optional[str] = None):
        """
        Initialize the trainer.

        Args:
            max_iterations: Maximum number of EM iterations
            convergence_tolerance: Stop when log-likelihood improvement < tolerance
            variant: Update rule, ``'standard'`` or ``'simple'``

        Raises:
            ValueError: If the variant is unknown or max_iterations < 1
        """
        self.max_iterations = max_iterations if max_iterations is not None \
            else get_config('training', 'max_iterations')
        self.convergence_tolerance = convergence_tolerance if convergence_tolerance is not None \
            else get_config('training', 'convergence_tolerance')
        self.variant = variant if variant is not None else get_config('training', 'variant')

        if self.variant not in VARIANTS:
            raise ValueError(f"Unknown training variant {self.variant!r}, "
                             f"expected one of {sorted(VARIANTS)}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")

        self._update: UpdateRule = VARIANTS[self.variant]

        logger.debug(f"BaumWelchTrainer initialized: variant={self.variant}, "
                     f"max_iterations={self.max_iterations}, "
                     f"convergence_tolerance={self.convergence_tolerance}")

    def fit(self, model: HiddenMarkovModel, corpus: Corpus) -> TrainingHistory:
        """
        Train ``model`` on ``corpus``.

        Args:
            model: Starting model; it is not modified
            corpus: Observation sequences

        Returns:
            TrainingHistory with the final model and per-iteration statistics

        Raises:
            EmptySequence: If the corpus or any of its sequences is empty
            UnknownLabel: If a sequence uses a symbol the model does not know
            ModelTrainingError: If training fails for any other reason
        """
        corpus = [list(observations) for observations in corpus]

        try:
            previous = total_log_likelihood(model, corpus)
            history = TrainingHistory(model=model, log_likelihood_history=[previous])

            logger.info(f"Starting Baum-Welch training with {len(corpus)} sequences")
            logger.info(f"Initial log-likelihood: {previous:.6f}")

            for iteration in range(self.max_iterations):
                history.model = self._update(history.model, corpus)
                current = total_log_likelihood(history.model, corpus)

                improvement = current - previous
                history.log_likelihood_history.append(current)
                history.improvement_history.append(improvement)

                logger.debug(f"Iteration {iteration + 1}: log_likelihood={current:.6f}, "
                             f"improvement={improvement:.6f}")

                if improvement < -1e-9:
                    logger.warning(f"Log-likelihood decreased by {-improvement:.6f} "
                                   f"at iteration {iteration + 1}")

                if abs(improvement) < self.convergence_tolerance:
                    history.converged = True
                    logger.info(f"Converged after {iteration + 1} iterations "
                                f"(improvement {improvement:.6f} < tolerance {self.convergence_tolerance})")
                    break

                previous = current

            if not history.converged:
                logger.info(f"Training stopped after {self.max_iterations} iterations without convergence")

            logger.info(f"Final log-likelihood: {history.final_log_likelihood:.6f}")
            return history

        except LabelHMMError:
            raise
        except Exception as e:
            raise ModelTrainingError(f"Baum-Welch training failed: {str(e)}") from e
