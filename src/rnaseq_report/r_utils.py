"""
R side of the environment: project renv libraries and the Bioconductor
packages the analysis calls (DESeq2, SummarizedExperiment, edgeR, limma).

Each R-backed subpackage checks its own packages when it is imported; the
pipeline checks all of them once before the first R call.
"""

from __future__ import annotations
from pathlib import Path
from typing import Optional, Sequence, Union

from .logger import get_logger

logger = get_logger(__name__)

ANALYSIS_R_PACKAGES = ["DESeq2", "SummarizedExperiment", "edgeR", "limma"]

# packages already found installed in this process
_checked_packages: set = set()


def _rpackages():
    try:
        import rpy2.robjects.packages as rpackages
    except ImportError as exc:
        raise ImportError(
            "rnaseq_report needs rpy2 and a working R installation for the "
            "DESeq2/edgeR/limma steps: pip install rpy2"
        ) from exc
    return rpackages


def has_renv(path: Optional[Union[str, Path]] = None) -> bool:
    """True if ``path`` (default: cwd) holds an initialized renv project."""
    root = Path.cwd() if path is None else Path(path)
    return (root / "renv" / "activate.R").is_file()


def activate_renv(path: Optional[Union[str, Path]] = None) -> bool:
    """
    Put an renv project library on R's library path.

    Sources ``renv/activate.R`` from the project directory and restores the
    R working directory afterwards.

    Args:
        path: renv project directory. Default: current working directory.

    Returns:
        True if the project was activated, False if ``path`` has no renv.

    Raises:
        RuntimeError: If the renv R package itself is not installed.
    """
    rpackages = _rpackages()
    from rpy2.robjects import r

    if not rpackages.isinstalled("renv"):
        raise RuntimeError("The R package 'renv' is not installed: install.packages('renv')")

    root = Path.cwd() if path is None else Path(path)
    if not has_renv(root):
        logger.warning("No renv project in %s (renv/activate.R not found)", root)
        return False

    project = root.resolve().as_posix()
    r(f'local({{ old <- setwd("{project}"); on.exit(setwd(old)); source("renv/activate.R") }})')
    logger.info("Activated renv project %s; library paths %s", project, list(r(".libPaths()"))[:2])
    return True


def missing_r_packages(packages: Sequence[str]) -> list:
    """The subset of ``packages`` that R cannot find."""
    rpackages = _rpackages()
    return [pkg for pkg in packages if not rpackages.isinstalled(pkg)]


def ensure_r_dependencies(packages: Sequence[str], install: bool = False) -> None:
    """
    Make sure the R packages are installed.

    Args:
        packages: R package names, e.g. ``["edgeR"]``.
        install: Install missing packages with BiocManager (CRAN mirror 1)
            instead of failing.

    Raises:
        ImportError: If rpy2 is missing, or packages are missing and
            ``install`` is False.
        RuntimeError: If installation did not provide every package.

    Example:
        >>> ensure_r_dependencies(ANALYSIS_R_PACKAGES, install=True)
    """
    pending = [pkg for pkg in packages if pkg not in _checked_packages]
    if not pending:
        return

    missing = missing_r_packages(pending)
    if missing and not install:
        raise ImportError(
            f"Missing R packages: {', '.join(missing)}. Install them with "
            f"BiocManager::install() or rerun with --install-missing."
        )
    if missing:
        _install_bioconductor(missing)
    _checked_packages.update(pending)


def _install_bioconductor(packages: Sequence[str]) -> None:
    rpackages = _rpackages()
    from rpy2.robjects.vectors import StrVector

    logger.info("Installing R packages via BiocManager: %s", ", ".join(packages))
    utils = rpackages.importr("utils")
    utils.chooseCRANmirror(ind=1)
    if not rpackages.isinstalled("BiocManager"):
        utils.install_packages(StrVector(["BiocManager"]))
    rpackages.importr("BiocManager").install(StrVector(list(packages)), ask=False)

    failed = [pkg for pkg in packages if not rpackages.isinstalled(pkg)]
    if failed:
        raise RuntimeError(f"Failed to install R packages: {', '.join(failed)}")
    logger.info("R packages installed")
