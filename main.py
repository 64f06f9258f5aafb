import argparse
import sys
from pathlib import Path

import pandas as pd

from automodel.config import get_config
from automodel.data.dataset import VersatileDataset
from automodel.errors import AutoModelError
from automodel.model import AutoModel
from automodel.reporting import LoggingStatusReport
from automodel.utils.logging_config import PipelineLogger, configure_third_party_logging, setup_logging

def main():
    """Main entry point for automodel"""
    parser = argparse.ArgumentParser(description="Automatic model selection with k-fold cross-validation")
    parser.add_argument("--data-path", required=True, help="Path to the CSV dataset")
    parser.add_argument("--target-column", required=True, help="Name of the column to predict")
    parser.add_argument("--method", default="feedforward",
                        help="Model type: feedforward, svm, rbfnetwork, neat or pnn")
    parser.add_argument("--folds", type=int, help="Number of cross-validation folds")
    parser.add_argument("--validation-percent", type=float, help="Share of rows held back for validation")
    parser.add_argument("--seed", type=int, help="Seed for the hold-back and fold shuffles")
    parser.add_argument("--no-shuffle", action="store_true", help="Split rows in file order")
    parser.add_argument("--n-jobs", type=int, help="Folds fitted in parallel (1 for sequential)")
    parser.add_argument("--config", help="Path to configuration file")
    parser.add_argument("--log-level", default="INFO", help="Logging level")

    args = parser.parse_args()

    # Setup logging
    setup_logging(log_level=args.log_level)
    configure_third_party_logging()

    # Load configuration
    config = get_config(args.config)
    settings = config.get_model_config()

    # Validate data path exists
    if not Path(args.data_path).exists():
        print(f"Error: Data file not found at {args.data_path}")
        sys.exit(1)

    validation_percent = args.validation_percent
    if validation_percent is None:
        validation_percent = settings['validation_percent']
    seed = settings['random_seed'] if args.seed is None else args.seed
    shuffle = settings['shuffle'] and not args.no_shuffle

    try:
        dataset = VersatileDataset(pd.read_csv(args.data_path))
        dataset.analyze()
        dataset.define_single_output_others_input(args.target_column)

        model = AutoModel(dataset, config=config)
        model.select_method(dataset, args.method)
        model.hold_back_validation(validation_percent, shuffle, seed)
        model.select_training_type(dataset)

        with PipelineLogger("cross-validation") as step:
            best_method = model.crossvalidate(
                args.folds, shuffle, report=LoggingStatusReport(), seed=seed, n_jobs=args.n_jobs
            )
            result = model.cross_validation_result
            validation_error = model.calculate_error(best_method, model.validation_dataset)
            step.log_metric("cv_mean", result.mean_score)
            step.log_metric("validation_error", validation_error)

    except AutoModelError as e:
        print(f"❌ Model selection failed: {e}")
        sys.exit(1)

    print("🎉 Cross-validation completed successfully!")
    print(f"Method: {model.method_type} ({model.method_args})")
    print(f"Training: {model.training_type}")
    print(f"Cross-validated score: {result.mean_score:.6f}")
    print(f"Best fold score: {result.best_score:.6f}")
    print(f"Held-back validation error: {validation_error:.6f}")

if __name__ == "__main__":
    main()
