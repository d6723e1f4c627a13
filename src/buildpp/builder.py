"""
Build orchestration: the common steps of a build run, in order.

    1. create directories      (setup.mkdirs)
    2. copy files and trees    (setup.copy)
    3. run the preprocessor    (setup.preprocess)
    4. run the CSS stripper    (setup.preprocess_css)
"""

import glob
import logging
import os
import shutil
import warnings
from typing import Any, Dict, List, Mapping

from buildpp.css import preprocess_css
from buildpp.model import BuildSetup
from buildpp.preprocessor import preprocess

log = logging.getLogger(__name__)


def merge(defaults: Mapping[str, Any], defines: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Merge two defines mappings. Values in `defines` override `defaults`.

    Shallow: nested values are shared, not copied.
    """
    ret = dict(defaults)
    ret.update(defines)
    return ret


def _glob(pattern: str) -> List[str]:
    if any(c in pattern for c in "*?["):
        return sorted(glob.glob(pattern))
    return [pattern]


def expand_sources(pattern: str) -> List[str]:
    """
    Files named by a source pattern.

    A directory yields every file below it, a glob pattern every match
    (directories among the matches are walked too), a plain file itself.
    """
    files = []
    matches = _glob(pattern)
    for match in matches:
        if os.path.isdir(match):
            for dirpath, dirnames, filenames in os.walk(match):
                dirnames.sort()
                files.extend(os.path.join(dirpath, name) for name in sorted(filenames))
        elif os.path.exists(match):
            files.append(match)
    return files


def copy_path(source: str, destination: str) -> None:
    """Copy like `cp -R`: into `destination` when it is an existing directory."""
    target = destination
    if os.path.isdir(destination):
        target = os.path.join(destination, os.path.basename(os.path.normpath(source)))
    if os.path.isdir(source):
        shutil.copytree(source, target, dirs_exist_ok=True)
    else:
        shutil.copy2(source, target)
    log.debug("Copied %s -> %s", source, target)


def build(setup: BuildSetup) -> None:
    """
    Run every step of `setup`.

    Stops at the first failure; files already written stay on disk.
    """
    defines = setup.defines

    for directory in setup.mkdirs:
        os.makedirs(directory, exist_ok=True)
        log.debug("Created directory %s", directory)

    for source_pattern, destination in setup.copy:
        sources = _glob(source_pattern)
        if not sources:
            warnings.warn(f"No files match copy source {source_pattern}", UserWarning)
            continue
        for source in sources:
            copy_path(source, destination)

    for source_pattern, destination in setup.preprocess:
        sources = expand_sources(source_pattern)
        if not sources:
            warnings.warn(f"No files match preprocess source {source_pattern}", UserWarning)
            continue
        for source in sources:
            # TODO: warn when several sources are written to one destination file
            target = destination
            if os.path.isdir(destination):
                target = os.path.join(destination, os.path.basename(source))
            log.debug("Preprocessing %s -> %s", source, target)
            preprocess(source, target, defines)

    for mode, source, destination in setup.preprocess_css:
        preprocess_css(mode, source, destination)


__all__ = ["build", "copy_path", "expand_sources", "merge"]
