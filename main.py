"""
Main script for the eigenfaces recognition system.

Splits a face dataset into one train and one test image per identity, runs the
eigenfaces pipeline and prints the per-image match table.
"""

import argparse
import logging
import os
import sys

from eigenmatch import config
from eigenmatch.config import PipelineConfig
from eigenmatch.core import (EigenfacesError, split_first_last, load_olivetti,
                             create_synthetic_dataset, run_pipeline, compare_basis_variants)
from eigenmatch.core.evaluation import evaluate_matches, create_performance_summary

logger = logging.getLogger("eigenmatch")


def parse_args(argv=None):
    ap = argparse.ArgumentParser("Eigenfaces recognition")
    ap.add_argument("--dataset", choices=["olivetti", "synthetic"], default="olivetti",
                    help="face dataset to evaluate on")
    ap.add_argument("--data-home", type=str, default=None, help="download/cache folder for the dataset")
    ap.add_argument("-k", "--n-components", type=int, default=config.DEFAULT_N_COMPONENTS,
                    help="number of eigenfaces")
    ap.add_argument("--normalize", action="store_true", help="scale eigenfaces to unit length")
    ap.add_argument("--workers", type=int, default=None, help="threads used for the loading solves")
    ap.add_argument("--output", type=str, default=None, help="write the result table to this CSV file")
    ap.add_argument("--images", type=str, default=None, help="directory for mean face and eigenface images")
    ap.add_argument("--compare", action="store_true", help="compare unnormalized and normalized eigenfaces")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return ap.parse_args(argv)


def _log_progress(percentage, message):
    logger.info("[%3d%%] %s", int(percentage), message)


def main(argv=None) -> int:
    """
    Run the pipeline from the command line.

    Returns:
        int: Exit status, 0 on success and 1 when a pipeline stage fails
    """
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format=config.LOG_FORMAT)

    pipeline_config = PipelineConfig(
        n_components=args.n_components,
        normalize_basis=args.normalize,
        n_workers=args.workers,
    )

    try:
        if args.dataset == "olivetti":
            face_set = load_olivetti(args.data_home, progress_callback=_log_progress)
        else:
            face_set = create_synthetic_dataset(progress_callback=_log_progress)

        train, test = split_first_last(face_set)
        result = run_pipeline(train.vectors, test.vectors, pipeline_config,
                              progress_callback=_log_progress)
    except EigenfacesError as e:
        logger.error("Pipeline aborted at stage '%s': %s", e.stage, e)
        return 1

    print(result.table.to_string(index=False))
    print()
    for key, value in create_performance_summary(result).items():
        print(f"{key}: {value}")

    metrics = evaluate_matches(result.matches)
    if metrics['failed_indices']:
        print(f"misidentified train images: {[i + 1 for i in metrics['failed_indices']]}")

    if args.output:
        result.table.to_csv(args.output, index=False)
        logger.info("Result table written to %s", args.output)

    if args.images:
        from eigenmatch.utils.rendering import save_face_image, save_eigenface_grid

        save_face_image(os.path.join(args.images, "mean_face.png"), result.mean_face)
        for i in range(result.basis.n_components):
            save_face_image(os.path.join(args.images, f"eigenface_{i+1:02d}.png"),
                            result.basis.vectors[:, i])
        save_eigenface_grid(result.basis, os.path.join(args.images, "eigenfaces.png"), result.mean_face)

    if args.compare:
        try:
            comparison = compare_basis_variants(train.vectors, test.vectors, args.n_components)
        except EigenfacesError as e:
            logger.error("Comparison aborted at stage '%s': %s", e.stage, e)
            return 1
        print()
        for name in ("unnormalized", "normalized"):
            m = comparison[name]
            print(f"{name}: recognition {m['recognition_rate']:.2%}, "
                  f"mean margin {m['mean_margin']:.4f}, reconstruction MSE {m['reconstruction_mse']:.6f}")
        print(f"nearest-neighbour agreement: {comparison['ranking_agreement']:.2%}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
