"""
Transform and transform-set documents in JSON, JSON5 or YAML.

A transform document is either ``{"r": <rotation>, "t": [x, y, z]}`` or a bare
rotation (no translation known). A transform-set document is a list of facts
``{"src": ..., "dst": ..., "tf": <transform>}``; it is loaded through
``TransformSet.build`` and written from ``TransformSet.to_facts``.

Malformed documents raise ``pydantic.ValidationError``.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import IO, Any, List, Optional, Tuple, Union

import json5
import yaml
from pydantic import BaseModel, ConfigDict, TypeAdapter

from tfchain.common.rigid_transform import RigidTransform
from tfchain.common.rotation import Rotation, Vec3, rotation_from_matrix, to_angle_format
from tfchain.config import KeepTranslation, OutputParams, TransformSetParams
from tfchain.state.transform_set import CoordTransform, TransformSet

logger = logging.getLogger(__name__)


class FileFormat(str, Enum):
    JSON = "json"
    JSON5 = "json5"
    YAML = "yaml"


_EXTENSIONS = {
    ".json": FileFormat.JSON,
    ".json5": FileFormat.JSON5,
    ".yaml": FileFormat.YAML,
    ".yml": FileFormat.YAML,
}


# =============================================================================
# Document Models
# =============================================================================


class TransformDoc(BaseModel):
    """Rotation plus translation."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    r: Rotation
    t: Vec3


MaybeTransform = Union[TransformDoc, Rotation]


class FactDoc(BaseModel):
    """One fact of a transform-set document."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    src: str
    dst: str
    tf: MaybeTransform


maybe_transform_adapter: TypeAdapter = TypeAdapter(MaybeTransform)
fact_list_adapter: TypeAdapter = TypeAdapter(List[FactDoc])


# =============================================================================
# Document <-> RigidTransform
# =============================================================================


def transform_from_doc(doc: MaybeTransform) -> Tuple[RigidTransform, bool]:
    """
    Returns:
        Tuple of (transform, has_translation); a bare rotation maps to a zero
        translation
    """
    if isinstance(doc, TransformDoc):
        return RigidTransform.from_parts(doc.r.to_matrix(), doc.t), True
    return RigidTransform.from_parts(doc.to_matrix()), False


def keep_or_discard_translation(has_translation: bool, keep: KeepTranslation) -> bool:
    keep = KeepTranslation(keep)
    if keep is KeepTranslation.ALWAYS:
        return True
    if keep is KeepTranslation.DISCARD:
        return False
    return has_translation


def doc_from_transform(
    tf: RigidTransform,
    has_translation: bool = True,
    output: Optional[OutputParams] = None,
) -> MaybeTransform:
    """Encode ``tf`` with the rotation format, angle unit and translation policy of ``output``."""
    output = output or OutputParams()
    rot = rotation_from_matrix(tf.rotation, output.rotation_format)
    rot = to_angle_format(rot, output.angle_format)
    if keep_or_discard_translation(has_translation, output.keep_translation):
        return TransformDoc(r=rot, t=tuple(float(c) for c in tf.translation))
    return rot


def parse_transform(data: Any) -> Tuple[RigidTransform, bool]:
    return transform_from_doc(maybe_transform_adapter.validate_python(data))


def dump_transform(
    tf: RigidTransform,
    has_translation: bool = True,
    output: Optional[OutputParams] = None,
) -> Any:
    doc = doc_from_transform(tf, has_translation, output)
    return maybe_transform_adapter.dump_python(doc, mode="json")


def parse_transform_set(data: Any, params: Optional[TransformSetParams] = None) -> TransformSet:
    """
    Raises:
        ValidationError: If the document is malformed
        InsertionError: If its facts contradict each other
    """
    docs = fact_list_adapter.validate_python(data)
    facts = [CoordTransform(doc.src, doc.dst, transform_from_doc(doc.tf)[0]) for doc in docs]
    return TransformSet.build(facts, params)


def dump_transform_set(tset: TransformSet, output: Optional[OutputParams] = None) -> List[Any]:
    """Spanning facts of ``tset`` as plain JSON-compatible data."""
    docs = [
        FactDoc(src=src, dst=dst, tf=doc_from_transform(tf, True, output))
        for src, dst, tf in tset.to_facts()
    ]
    return fact_list_adapter.dump_python(docs, mode="json")


# =============================================================================
# File I/O
# =============================================================================


def guess_format(path: str | Path) -> Optional[FileFormat]:
    """File format from the extension; ``-`` (stdio) has none."""
    if str(path) == "-":
        return None
    return _EXTENSIONS.get(Path(path).suffix.lower())


def resolve_format(path: str | Path, file_format: Optional[FileFormat]) -> FileFormat:
    """
    Raises:
        ValueError: If no format was given and none can be guessed
    """
    if file_format is not None:
        return FileFormat(file_format)
    guessed = guess_format(path)
    if guessed is None:
        raise ValueError(f"unable to determine the file format for path '{path}'")
    return guessed


def read_document(stream: IO[str], file_format: FileFormat) -> Any:
    file_format = FileFormat(file_format)
    if file_format is FileFormat.JSON:
        return json.load(stream)
    if file_format is FileFormat.JSON5:
        return json5.load(stream)
    return yaml.safe_load(stream)


def write_document(data: Any, stream: IO[str], file_format: FileFormat, pretty: bool = True) -> None:
    file_format = FileFormat(file_format)
    if file_format is FileFormat.JSON:
        json.dump(data, stream, indent=2 if pretty else None)
        stream.write("\n")
    elif file_format is FileFormat.JSON5:
        json5.dump(data, stream, indent=2 if pretty else None, quote_keys=True, trailing_commas=False)
        stream.write("\n")
    else:
        yaml.safe_dump(data, stream, sort_keys=False, default_flow_style=None if pretty else True)


def load_transform(
    path: str | Path,
    file_format: Optional[FileFormat] = None,
) -> Tuple[RigidTransform, bool]:
    file_format = resolve_format(path, file_format)
    with open(path, "r", encoding="utf-8") as f:
        return parse_transform(read_document(f, file_format))


def load_transform_set(
    path: str | Path,
    file_format: Optional[FileFormat] = None,
    params: Optional[TransformSetParams] = None,
) -> TransformSet:
    file_format = resolve_format(path, file_format)
    with open(path, "r", encoding="utf-8") as f:
        return parse_transform_set(read_document(f, file_format), params)


def load_transform_set_dir(
    path: str | Path,
    params: Optional[TransformSetParams] = None,
) -> TransformSet:
    """
    Merge every JSON, JSON5 or YAML transform-set file directly inside ``path``.

    Files are read in name order; other files and subdirectories are skipped.
    """
    merged = TransformSet(params)
    for entry in sorted(Path(path).iterdir()):
        if not entry.is_file() or guess_format(entry) is None:
            continue
        logger.debug("Loading transform set %s", entry)
        merged.merge(load_transform_set(entry, params=params))
    return merged


def load_transform_set_path(
    path: str | Path,
    file_format: Optional[FileFormat] = None,
    params: Optional[TransformSetParams] = None,
) -> TransformSet:
    """Load a single transform-set file, or merge a directory of them."""
    if Path(path).is_dir():
        return load_transform_set_dir(path, params)
    return load_transform_set(path, file_format, params)


def save_transform_set(
    tset: TransformSet,
    path: str | Path,
    file_format: Optional[FileFormat] = None,
    output: Optional[OutputParams] = None,
) -> None:
    output = output or OutputParams()
    file_format = resolve_format(path, file_format)
    with open(path, "w", encoding="utf-8") as f:
        write_document(dump_transform_set(tset, output), f, file_format, output.pretty)
