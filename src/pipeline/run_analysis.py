"""End-to-end comparison of logistic regression variants for diabetes prediction."""

import argparse
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List

import joblib
import mlflow
import pandas as pd

from src.config.settings import load_config
from src.data.load_dataset import load_dataset
from src.data.split import stratified_split
from src.models.evaluate import EvaluationResult, evaluate_models, results_frame, roc_table
from src.models.fitters import FittedModel, fit_candidate_models
from src.models.select import Selection, select_final_model

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisReport:
    """Everything a run produces, for persistence and reporting."""

    data_path: str
    cleaning: Dict
    train: pd.DataFrame
    test: pd.DataFrame
    models: Dict[str, FittedModel]
    results: Dict[str, List[EvaluationResult]]
    selection: Selection

    @property
    def final_model(self) -> FittedModel:
        return self.models[self.selection.model_name]


def run_analysis(config: dict, data_path: Path = None) -> AnalysisReport:
    """Load, split, fit, evaluate and select.

    Args:
        config: Analysis configuration (see src.config.settings)
        data_path: Dataset path; defaults to config["data"]["raw_path"]

    Returns:
        AnalysisReport
    """
    data_path = Path(data_path or config["data"]["raw_path"])
    seed = config["data"]["random_seed"]

    dataset, cleaning = load_dataset(data_path, return_summary=True)

    train, test = stratified_split(dataset, config["data"]["train_fraction"], seed)

    models = fit_candidate_models(
        train,
        covariates=config["models"]["covariates"],
        seed=seed,
        max_iter=config["models"]["max_iter"],
        lasso_options=config["models"]["lasso"],
    )

    results = evaluate_models(models, train, test, config["evaluation"]["threshold"])
    selection = select_final_model(results["train"], results["test"])

    return AnalysisReport(
        data_path=str(data_path),
        cleaning=cleaning,
        train=train,
        test=test,
        models=models,
        results=results,
        selection=selection,
    )


def coefficients_frame(models: Dict[str, FittedModel]) -> pd.DataFrame:
    """Long-format table of intercepts, coefficients and odds ratios per model."""
    rows = []
    for model in models.values():
        rows.append({"model": model.name, "term": "(Intercept)", "coefficient": model.intercept})
        odds = model.odds_ratios()
        for covariate in model.selected_covariates:
            rows.append(
                {
                    "model": model.name,
                    "term": covariate,
                    "coefficient": model.coefficients[covariate],
                    "odds_ratio": odds[covariate],
                }
            )
    return pd.DataFrame(rows, columns=["model", "term", "coefficient", "odds_ratio"])


def save_artifacts(report: AnalysisReport, output_dir: Path, config: dict) -> Path:
    """Write evaluation tables, ROC points, final model and metadata.

    Args:
        report: Completed analysis
        output_dir: Parent directory; a timestamped run directory is created in it
        config: Configuration used for the run

    Returns:
        Path to the run directory
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = Path(output_dir) / f"run_{timestamp}"
    run_dir.mkdir(parents=True, exist_ok=True)

    all_results = report.results["train"] + report.results["test"]
    results_frame(all_results).to_csv(run_dir / "evaluation_results.csv", index=False)
    coefficients_frame(report.models).to_csv(run_dir / "coefficients.csv", index=False)

    for model in report.models.values():
        for partition, df in (("train", report.train), ("test", report.test)):
            roc_table(model, df).to_csv(run_dir / f"roc_{model.name}_{partition}.csv", index=False)

    joblib.dump(report.final_model, run_dir / "final_model.pkl")

    metadata = {
        "version": timestamp,
        "analysis_date": datetime.now().isoformat(),
        "data_path": report.data_path,
        "cleaning": report.cleaning,
        "train_size": len(report.train),
        "test_size": len(report.test),
        "random_seed": config["data"]["random_seed"],
        "selection": {
            "model": report.selection.model_name,
            "train_auc": report.selection.train_auc,
            "test_auc": report.selection.test_auc,
        },
        "final_model": report.final_model.to_dict(),
        "selected_covariates": {
            name: model.selected_covariates for name, model in report.models.items()
        },
        "lasso": {
            key: report.models["lasso"].metadata[key]
            for key in ("lambda_1se", "lambda_min", "cv_auc_1se", "cv_auc_max")
        },
    }

    with open(run_dir / "metadata.json", "w") as f:
        json.dump(metadata, f, indent=2)

    logger.info(f"Artifacts saved to: {run_dir}")

    return run_dir


def log_to_mlflow(report: AnalysisReport, config: dict, run_dir: Path) -> str:
    """Record parameters, per-model metrics and artifacts in an MLflow run.

    Returns:
        MLflow run ID
    """
    mlflow.set_tracking_uri(config["mlflow"]["tracking_uri"])
    mlflow.set_experiment(config["mlflow"]["experiment_name"])

    with mlflow.start_run() as run:
        mlflow.log_params(
            {
                "train_fraction": config["data"]["train_fraction"],
                "random_seed": config["data"]["random_seed"],
                "threshold": config["evaluation"]["threshold"],
                "lasso_n_folds": config["models"]["lasso"]["n_folds"],
                "selected_model": report.selection.model_name,
            }
        )

        metrics = {}
        for partition, results in report.results.items():
            for result in results:
                prefix = f"{result.model_name}_{partition}_"
                metrics[f"{prefix}auc"] = result.auc
                metrics[f"{prefix}accuracy"] = result.accuracy
                metrics[f"{prefix}precision"] = result.precision
        mlflow.log_metrics(metrics)

        mlflow.log_artifacts(str(run_dir))

        return run.info.run_id


def print_summary(report: AnalysisReport) -> None:
    print("\n" + "=" * 60)
    print("MODEL COMPARISON")
    print("=" * 60)

    test_by_name = {r.model_name: r for r in report.results["test"]}
    print(f"{'model':15s} {'train AUC':>10s} {'test AUC':>10s} {'accuracy':>10s} {'precision':>10s}")
    for result in report.results["train"]:
        test = test_by_name[result.model_name]
        print(
            f"{result.model_name:15s} {result.auc:10.4f} {test.auc:10.4f} "
            f"{test.accuracy:10.4f} {test.precision:10.4f}"
        )

    print()
    print(f"Final model: {report.selection.model_name}")
    print(f"  Test AUC: {report.selection.test_auc:.4f}")
    for term, weight in report.final_model.to_dict()["coefficients"].items():
        print(f"  {term:30s} {weight:+.4f}")


def main():
    """CLI entry point for the model comparison."""
    parser = argparse.ArgumentParser(description="Compare logistic regression models for diabetes")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("configs/analysis_config.yaml"),
        help="Config file path",
    )
    parser.add_argument("--data", type=Path, default=None, help="Input CSV (overrides config)")
    parser.add_argument("--output-dir", type=Path, default=None, help="Output directory")
    args = parser.parse_args()

    config = load_config(args.config)

    log_level = config["logging"].get("log_level", "INFO")
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    report = run_analysis(config, args.data)

    output_dir = args.output_dir or Path(config["output"]["dir"])
    run_dir = save_artifacts(report, output_dir, config)

    if config["mlflow"]["enabled"]:
        run_id = log_to_mlflow(report, config, run_dir)
        logger.info(f"MLflow run ID: {run_id}")

    print_summary(report)

    return 0


if __name__ == "__main__":
    exit(main())
