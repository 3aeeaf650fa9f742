"""Evaluation of fitted logistic models on a data partition."""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix, roc_auc_score, roc_curve

from src.config.constants import DEFAULT_THRESHOLD, TARGET_COLUMN
from src.exceptions import UndefinedMetricError
from src.models.fitters import FittedModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationResult:
    """Metrics of one model on one partition, at a fixed decision threshold."""

    model_name: str
    partition: str
    n: int
    auc: float
    tn: int
    fp: int
    fn: int
    tp: int
    accuracy: float
    precision: float

    @property
    def sensitivity(self) -> float:
        return self.tp / (self.tp + self.fn)

    @property
    def specificity(self) -> float:
        return self.tn / (self.tn + self.fp)

    def to_dict(self) -> Dict:
        record = asdict(self)
        record["sensitivity"] = self.sensitivity
        record["specificity"] = self.specificity
        return record


def predict_proba(model: FittedModel, df: pd.DataFrame) -> np.ndarray:
    """Predicted probability of a positive outcome for each record."""
    return model.predict_proba(df)


def confusion_counts(y_true, y_proba, threshold: float = DEFAULT_THRESHOLD) -> tuple:
    """Confusion matrix cells at a decision threshold.

    Args:
        y_true: True labels
        y_proba: Predicted probabilities
        threshold: Predicted class is 1 iff probability >= threshold

    Returns:
        Tuple of (tn, fp, fn, tp)
    """
    y_pred = (np.asarray(y_proba) >= threshold).astype(int)
    tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()
    return int(tn), int(fp), int(fn), int(tp)


def accuracy(tn: int, fp: int, fn: int, tp: int) -> float:
    return (tp + tn) / (tn + fp + fn + tp)


def precision(tp: int, fp: int) -> float:
    """TP / (TP + FP).

    Raises:
        UndefinedMetricError: If no positive predictions were made
    """
    if tp + fp == 0:
        raise UndefinedMetricError("Precision is undefined: no positive predictions")
    return tp / (tp + fp)


def roc_auc(y_true, y_proba) -> float:
    """Area under the ROC curve; tied scores get half credit.

    Raises:
        UndefinedMetricError: If y_true contains a single class
    """
    if len(np.unique(y_true)) < 2:
        raise UndefinedMetricError("AUC is undefined: only one class present in labels")
    return float(roc_auc_score(y_true, y_proba))


def evaluate_model(
    model: FittedModel,
    df: pd.DataFrame,
    partition: str,
    threshold: float = DEFAULT_THRESHOLD,
) -> EvaluationResult:
    """Evaluate one model on one partition.

    Args:
        model: Fitted model
        df: Records with true labels
        partition: Partition label ("train" or "test")
        threshold: Decision threshold for the confusion matrix

    Returns:
        EvaluationResult
    """
    y_true = df[TARGET_COLUMN].to_numpy(dtype=int)
    y_proba = predict_proba(model, df)

    tn, fp, fn, tp = confusion_counts(y_true, y_proba, threshold)

    return EvaluationResult(
        model_name=model.name,
        partition=partition,
        n=len(df),
        auc=roc_auc(y_true, y_proba),
        tn=tn,
        fp=fp,
        fn=fn,
        tp=tp,
        accuracy=accuracy(tn, fp, fn, tp),
        precision=precision(tp, fp),
    )


def evaluate_models(
    models: Dict[str, FittedModel],
    train: pd.DataFrame,
    test: pd.DataFrame,
    threshold: float = DEFAULT_THRESHOLD,
) -> Dict[str, List[EvaluationResult]]:
    """Evaluate every model on both partitions, preserving model order.

    Args:
        models: Ordered mapping of model name to FittedModel
        train: Training partition
        test: Test partition
        threshold: Decision threshold

    Returns:
        Dictionary with "train" and "test" lists of EvaluationResult
    """
    results = {"train": [], "test": []}

    for model in models.values():
        for partition, df in (("train", train), ("test", test)):
            result = evaluate_model(model, df, partition, threshold)
            results[partition].append(result)
            logger.info(
                f"{model.name} [{partition}]: AUC={result.auc:.4f}, "
                f"accuracy={result.accuracy:.4f}, precision={result.precision:.4f}"
            )

    return results


def roc_table(model: FittedModel, df: pd.DataFrame) -> pd.DataFrame:
    """ROC curve points for a model on a partition.

    Args:
        model: Fitted model
        df: Records with true labels

    Returns:
        Dataframe with fpr, tpr and threshold columns
    """
    fpr, tpr, thresholds = roc_curve(df[TARGET_COLUMN], predict_proba(model, df))
    return pd.DataFrame({"fpr": fpr, "tpr": tpr, "threshold": thresholds})


def results_frame(results: Sequence[EvaluationResult]) -> pd.DataFrame:
    return pd.DataFrame([r.to_dict() for r in results])
