"""Final model selection by training AUC."""

import logging
from dataclasses import dataclass
from typing import Sequence

from src.models.evaluate import EvaluationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Selection:
    model_name: str
    train_auc: float
    test_auc: float


def select_final_model(
    train_results: Sequence[EvaluationResult],
    test_results: Sequence[EvaluationResult],
) -> Selection:
    """Pick the model with the highest training AUC.

    On equal training AUC the model evaluated first wins. The test AUC of the
    chosen model is reported as a single-split generalization estimate.

    Args:
        train_results: Training-partition results, in evaluation order
        test_results: Test-partition results

    Returns:
        Selection with the chosen model's train and test AUC
    """
    if not train_results:
        raise ValueError("No training results to select from")

    best = train_results[0]
    for result in train_results[1:]:
        if result.auc > best.auc:
            best = result

    test_by_name = {r.model_name: r for r in test_results}
    if best.model_name not in test_by_name:
        raise ValueError(f"No test result for selected model '{best.model_name}'")

    selection = Selection(
        model_name=best.model_name,
        train_auc=best.auc,
        test_auc=test_by_name[best.model_name].auc,
    )

    logger.info(
        f"Selected {selection.model_name}: train AUC={selection.train_auc:.4f}, "
        f"test AUC={selection.test_auc:.4f}"
    )

    return selection
