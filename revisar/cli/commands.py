# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the Revisar CLI.

Each function here corresponds to one CLI subcommand and returns an exit
code. Pipeline modules are imported inside the handlers so that `revisar
info` and `--help` stay fast.

Everything goes through the structured logger. The one exception is
`apply` without --write, whose suggestions are the command's output and
are printed to stdout.
"""

import argparse
import logging
from pathlib import Path

from revisar.cli.exit_codes import CONFIG_ERROR, RUNTIME_ERROR, SUCCESS, USER_ERROR, VALIDATION_ERROR
from revisar.config.exceptions import ConfigError
from revisar.config.loader import (
    apply_or_default,
    clustering_or_default,
    generalize_or_default,
    load_config,
)
from revisar.config.schema import RevisarConfig
from revisar.logging.logger import get_logger
from revisar.runtime.bootstrap import bootstrap


def _resolve_project_root(args: argparse.Namespace) -> Path:
    """--project-root when given, otherwise the nearest pyproject.toml."""
    if args.project_root is not None:
        return Path(args.project_root).resolve()

    from revisar.utils.paths import resolve_project_root

    return resolve_project_root()


def _load_and_bootstrap(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, RevisarConfig | None, logging.Logger]:
    """
    The shared setup every command needs: load config, run bootstrap.

    Returns (exit_code, config, logger). If exit_code is not SUCCESS the
    caller should return it immediately.
    """
    logger = get_logger(f"revisar.cli.{command_name}", log_level=args.log_level)

    config = None
    if args.config is not None:
        try:
            config = load_config(Path(args.config))
        except ConfigError as err:
            logger.error(
                "Configuration error",
                extra={"command": command_name, "error": str(err)},
            )
            return CONFIG_ERROR, None, logger

    if config is not None:
        project_root = Path(args.project_root).resolve() if args.project_root else None
        bootstrap(config.global_config, project_root)
    else:
        logger.debug(
            "No config provided, running with defaults",
            extra={"command": command_name},
        )

    if args.seed is not None:
        from revisar.runtime.bootstrap import set_deterministic_seed

        set_deterministic_seed(args.seed)

    return SUCCESS, config, logger


def handle_crawl(args: argparse.Namespace) -> int:
    """Clone every configured source at its pinned commit."""
    exit_code, config, logger = _load_and_bootstrap(args, "crawl")
    if exit_code != SUCCESS:
        return exit_code

    try:
        if config is None or config.mining is None:
            logger.info(
                "No mining config provided, nothing to crawl",
                extra={"command": "crawl"},
            )
            return SUCCESS

        logger.info("Starting crawl", extra={"command": "crawl", "dry_run": args.dry_run})

        if args.dry_run:
            logger.info(
                "Dry run, would crawl sources",
                extra={"source_count": len(config.mining.sources)},
            )
            return SUCCESS

        from revisar.mining.crawl.crawler import crawl_repositories

        result = crawl_repositories(config.mining, _resolve_project_root(args))

        logger.info(
            "Crawl finished",
            extra={
                "total": result.total_sources,
                "cloned": result.cloned,
                "skipped": result.skipped,
            },
        )
        return SUCCESS

    except Exception as err:
        logger.error("Crawl failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR


def handle_extract(args: argparse.Namespace) -> int:
    """Extract concrete edits from the crawled histories."""
    exit_code, config, logger = _load_and_bootstrap(args, "extract")
    if exit_code != SUCCESS:
        return exit_code

    try:
        if config is None or config.mining is None:
            logger.info(
                "No mining config provided, nothing to extract",
                extra={"command": "extract"},
            )
            return SUCCESS

        logger.info("Starting extraction", extra={"command": "extract", "dry_run": args.dry_run})

        if args.dry_run:
            logger.info("Dry run, would extract edits from crawled sources")
            return SUCCESS

        from revisar.mining.extract.extractor import run_extraction

        stats = run_extraction(config.mining, _resolve_project_root(args))

        logger.info(
            "Extraction finished",
            extra={
                "edits": stats.edits_kept,
                "files_scanned": stats.files_scanned,
                "version": stats.version_hash[:16],
            },
        )
        return SUCCESS

    except Exception as err:
        logger.error("Extraction failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR


def handle_cluster(args: argparse.Namespace) -> int:
    """Cluster the latest edit dataset."""
    exit_code, config, logger = _load_and_bootstrap(args, "cluster")
    if exit_code != SUCCESS:
        return exit_code

    try:
        if config is None:
            logger.info(
                "No config provided, nothing to cluster",
                extra={"command": "cluster"},
            )
            return SUCCESS

        logger.info("Starting clustering", extra={"command": "cluster", "dry_run": args.dry_run})

        if args.dry_run:
            logger.info("Dry run, would cluster the latest edit dataset")
            return SUCCESS

        from revisar.clustering.clusterer import run_clustering

        result = run_clustering(clustering_or_default(config), _resolve_project_root(args))

        logger.info(
            "Clustering finished",
            extra={
                "edits": result.total_edits,
                "clusters": len(result.clusters),
                "output": result.output_path,
            },
        )
        return SUCCESS

    except Exception as err:
        logger.error("Clustering failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR


def handle_generalize(args: argparse.Namespace) -> int:
    """Turn clusters into the transformation catalog."""
    exit_code, config, logger = _load_and_bootstrap(args, "generalize")
    if exit_code != SUCCESS:
        return exit_code

    try:
        if config is None:
            logger.info(
                "No config provided, nothing to generalize",
                extra={"command": "generalize"},
            )
            return SUCCESS

        logger.info(
            "Starting generalization",
            extra={"command": "generalize", "dry_run": args.dry_run},
        )

        if args.dry_run:
            logger.info("Dry run, would generalize clusters into transformations")
            return SUCCESS

        from revisar.transform.generalizer import run_generalization

        result = run_generalization(
            generalize_or_default(config),
            _resolve_project_root(args),
            clustering_or_default(config),
        )

        logger.info(
            "Generalization finished",
            extra={
                "transformations": len(result.transformations),
                "output": result.output_path,
            },
        )
        return SUCCESS

    except Exception as err:
        logger.error("Generalization failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR


def handle_mine(args: argparse.Namespace) -> int:
    """Run the whole mining pipeline: crawl, extract, cluster, generalize."""
    exit_code, config, logger = _load_and_bootstrap(args, "mine")
    if exit_code != SUCCESS:
        return exit_code

    try:
        if config is None or config.mining is None:
            logger.info(
                "No mining config provided, nothing to mine",
                extra={"command": "mine"},
            )
            return SUCCESS

        logger.info("Starting pipeline", extra={"command": "mine", "dry_run": args.dry_run})

        if args.dry_run:
            logger.info(
                "Dry run, would crawl, extract, cluster and generalize",
                extra={"source_count": len(config.mining.sources)},
            )
            return SUCCESS

        from revisar.clustering.clusterer import run_clustering
        from revisar.mining.crawl.crawler import crawl_repositories
        from revisar.mining.extract.extractor import run_extraction
        from revisar.transform.generalizer import run_generalization

        project_root = _resolve_project_root(args)
        clustering = clustering_or_default(config)

        crawl_repositories(config.mining, project_root)
        stats = run_extraction(config.mining, project_root)
        clusters = run_clustering(clustering, project_root)
        result = run_generalization(generalize_or_default(config), project_root, clustering)

        logger.info(
            "Pipeline finished",
            extra={
                "edits": stats.edits_kept,
                "clusters": len(clusters.clusters),
                "transformations": len(result.transformations),
                "catalog_hash": result.catalog_hash[:16],
            },
        )
        return SUCCESS

    except Exception as err:
        logger.error("Pipeline failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR


def _java_files(input_path: Path) -> list[Path]:
    if input_path.is_file():
        return [input_path]
    return sorted(path for path in input_path.rglob("*.java") if path.is_file())


def handle_apply(args: argparse.Namespace) -> int:
    """Suggest or apply mined transformations on Java files."""
    exit_code, config, logger = _load_and_bootstrap(args, "apply")
    if exit_code != SUCCESS:
        return exit_code

    try:
        from revisar.java.lexer import JavaSyntaxError
        from revisar.transform.applier import apply_all, suggest
        from revisar.transform.transformation import load_catalog
        from revisar.utils.filesystem import atomic_write

        apply_config = apply_or_default(config)

        input_path = Path(args.input_path)
        if not input_path.exists():
            logger.error("Input path not found", extra={"path": str(input_path)})
            return USER_ERROR

        if args.transformations_path is not None:
            catalog_path = Path(args.transformations_path)
        else:
            catalog_path = _resolve_project_root(args) / apply_config.transformations_path

        try:
            transformations = load_catalog(catalog_path)
        except FileNotFoundError as err:
            logger.error("Transformation catalog not found", extra={"error": str(err)})
            return USER_ERROR
        except ValueError as err:
            logger.error("Transformation catalog is invalid", extra={"error": str(err)})
            return VALIDATION_ERROR

        logger.info(
            "Applying transformations",
            extra={
                "transformations": len(transformations),
                "input": str(input_path),
                "write": args.write,
                "dry_run": args.dry_run,
            },
        )

        files_changed = 0
        total_sites = 0
        for java_file in _java_files(input_path):
            try:
                source = java_file.read_text(encoding="utf-8")
                if args.write:
                    result = apply_all(source, transformations)
                    if result.applied == 0:
                        continue
                    total_sites += result.applied
                    files_changed += 1
                    if args.dry_run:
                        logger.info(
                            "Dry run, would rewrite file",
                            extra={"path": str(java_file), "sites": result.sites},
                        )
                    else:
                        atomic_write(java_file, result.text)
                        logger.info(
                            "File rewritten",
                            extra={"path": str(java_file), "sites": result.sites},
                        )
                else:
                    suggestions = suggest(source, transformations, apply_config.max_suggestions)
                    if suggestions:
                        files_changed += 1
                    total_sites += len(suggestions)
                    for item in suggestions:
                        print(
                            f"{java_file}:{item.line}: [{item.transformation_id}] "
                            f"{item.original} ==> {item.replacement}"
                        )
            except JavaSyntaxError as err:
                logger.warning(
                    "Skipping file that does not parse",
                    extra={"path": str(java_file), "error": str(err)},
                )
            except UnicodeDecodeError as err:
                logger.warning(
                    "Skipping file that is not UTF-8",
                    extra={"path": str(java_file), "error": str(err)},
                )

        logger.info(
            "Apply finished",
            extra={"files": files_changed, "sites": total_sites, "write": args.write},
        )
        return SUCCESS

    except Exception as err:
        logger.error("Apply failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR


def handle_verify(args: argparse.Namespace) -> int:
    """Validate an edit dataset's shards against its checksums."""
    exit_code, config, logger = _load_and_bootstrap(args, "verify")
    if exit_code != SUCCESS:
        return exit_code

    try:
        from revisar.mining.store.integrity import verify_store_integrity
        from revisar.utils.paths import latest_version_dir

        logger.info("Starting verification", extra={"command": "verify"})

        if args.edits_dir is not None:
            dataset_path = Path(args.edits_dir)
        else:
            if config is not None and config.mining is not None:
                edits_directory = config.mining.edits_directory
            else:
                edits_directory = clustering_or_default(config).edits_directory
            latest = latest_version_dir(_resolve_project_root(args) / edits_directory)
            if latest is None:
                logger.error("No edit dataset found", extra={"path": edits_directory})
                return VALIDATION_ERROR
            dataset_path = latest

        if not dataset_path.is_dir():
            logger.error("Dataset directory not found", extra={"path": str(dataset_path)})
            return VALIDATION_ERROR

        if not verify_store_integrity(dataset_path):
            logger.error("Integrity check failed", extra={"path": str(dataset_path)})
            return VALIDATION_ERROR

        logger.info("Verification complete", extra={"command": "verify", "path": str(dataset_path)})
        return SUCCESS

    except Exception as err:
        logger.error("Verification failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR


def handle_info(args: argparse.Namespace) -> int:
    """Display environment and configuration information."""
    logger = get_logger("revisar.cli.info", log_level=args.log_level)

    from revisar import __version__
    from revisar.runtime.environment import get_system_info

    system_info = get_system_info()

    logger.info(
        "System information",
        extra={
            "revisar_version": __version__,
            "python_version": system_info.python_version,
            "platform": system_info.platform,
            "architecture": system_info.architecture,
            "hostname": system_info.hostname,
            "git_version": system_info.git_version,
            "config": args.config,
        },
    )
    return SUCCESS
