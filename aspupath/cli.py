"""Command-line interface for aspupath."""

import argparse
import datetime
import logging
import sys
from pathlib import Path
from typing import Any, Dict

from .base import PathwayConfig
from .config import load_config
from .engine import PathwaySingleTest
from .exceptions import AspuPathError
from .inputs import (
    align_snp_info,
    load_covariates,
    load_gene_info,
    load_genotypes,
    load_phenotype,
    load_snp_info,
)
from .version import __version__

logger = logging.getLogger("aspupath")

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}


def create_parser() -> argparse.ArgumentParser:
    """Create and return the argument parser for the aspupath CLI."""
    parser = argparse.ArgumentParser(
        description="aspupath: single-gene based pathway SPU and adaptive SPU tests."
    )

    # General Options
    general_group = parser.add_argument_group("General Options")
    general_group.add_argument(
        "--version",
        action="version",
        version=f"aspupath {__version__}",
        help="Show the current version and exit",
    )
    general_group.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARN", "ERROR"],
        default="INFO",
        help="Set the logging level",
    )
    general_group.add_argument(
        "--log-file", help="Path to a file to write logs to (in addition to stderr)."
    )
    general_group.add_argument(
        "-c",
        "--config",
        help="Path to a JSON configuration file (overrides packaged defaults)",
        default=None,
    )

    # Core Input
    io_group = parser.add_argument_group("Core Input")
    io_group.add_argument(
        "-g",
        "--genotype-file",
        required=True,
        help="Samples x SNPs table; first column = sample ID, header = SNP IDs",
    )
    io_group.add_argument(
        "-p",
        "--phenotype-file",
        required=True,
        help="Phenotype table; first column = sample ID",
    )
    io_group.add_argument(
        "--phenotype-column",
        default=None,
        help="Phenotype column name (default: first data column)",
    )
    io_group.add_argument(
        "--covariate-file",
        default=None,
        help="Optional covariate table; first column = sample ID",
    )
    io_group.add_argument(
        "--snp-info", required=True, help="SNP table: id, chromosome, position"
    )
    io_group.add_argument(
        "--gene-info", required=True, help="Gene table: id, chromosome, start, end"
    )

    # Test Options (None = take the value from the configuration file)
    test_group = parser.add_argument_group("Test Options")
    test_group.add_argument(
        "--model",
        choices=["binomial", "gaussian"],
        default=None,
        help="Trait model: binomial (case/control) or gaussian (quantitative)",
    )
    test_group.add_argument(
        "--pow",
        default=None,
        help="Comma-separated powers; 'inf' selects the max statistic (e.g. 1,2,4,8,inf)",
    )
    test_group.add_argument("--n-perm", type=int, default=None, help="Number of permutations")
    test_group.add_argument(
        "--use-pcs",
        action="store_true",
        default=None,
        help="Replace each gene's SNPs by leading principal components",
    )
    test_group.add_argument(
        "--varprop",
        type=float,
        default=None,
        help="Variance proportion the retained components must explain",
    )
    test_group.add_argument("--seed", type=int, default=None, help="Permutation seed")
    test_group.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker processes for the permutation loop (-1 = all CPUs)",
    )
    return parser


def _apply_cli_overrides(cfg: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    overrides = {
        "model": args.model,
        "pow": args.pow,
        "n_perm": args.n_perm,
        "use_pcs": args.use_pcs,
        "varprop": args.varprop,
        "seed": args.seed,
        "permutation_workers": args.workers,
    }
    merged = dict(cfg)
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return merged


def main() -> int:
    """Run main entry point for the aspupath CLI.

    Steps:
        1. Parse arguments.
        2. Configure logging and load config.
        3. Load genotype, phenotype, covariate, SNP and gene tables.
        4. Run the pathway test.
        5. Print ``label<TAB>p-value`` lines to stdout.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    start_time: datetime.datetime = datetime.datetime.now()

    parser = create_parser()
    args: argparse.Namespace = parser.parse_args()

    logging.getLogger("aspupath").setLevel(LOG_LEVEL_MAP[args.log_level])

    # If a log file is specified, add a file handler
    if args.log_file:
        log_file_path = Path(args.log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        fh = logging.FileHandler(args.log_file)
        fh.setLevel(LOG_LEVEL_MAP[args.log_level])
        fh.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        logger.addHandler(fh)
        logger.debug(f"Logging to file enabled: {args.log_file}")

    logger.info(f"Run started at {start_time.isoformat()}")
    logger.debug(f"Command line invocation: {' '.join(sys.argv)}")

    try:
        cfg = _apply_cli_overrides(load_config(args.config), args)
        logger.debug(f"Configuration loaded: {cfg}")
        config = PathwayConfig.from_dict(cfg)

        genotypes, samples, snp_ids = load_genotypes(args.genotype_file)
        phenotype = load_phenotype(args.phenotype_file, samples, args.phenotype_column)
        covariates = None
        if args.covariate_file:
            covariates, covariate_names = load_covariates(args.covariate_file, samples)
            logger.info(f"Covariates: {covariate_names}")
        snp_info = align_snp_info(load_snp_info(args.snp_info), snp_ids)
        gene_info = load_gene_info(args.gene_info)

        result = PathwaySingleTest(config).run(
            phenotype, genotypes, snp_info, gene_info, covariates=covariates
        )
    except (AspuPathError, ValueError, FileNotFoundError) as e:
        logger.error(f"Pathway test failed: {e}")
        return 1

    for label, pvalue in result.pvalues.items():
        print(f"{label}\t{pvalue:.6g}")

    elapsed = datetime.datetime.now() - start_time
    logger.info(f"Run finished in {elapsed.total_seconds():.1f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
