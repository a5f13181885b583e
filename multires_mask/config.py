"""Read-only configuration: command-line arguments + elastix parameter file.

Parameter files use the elastix text format, one entry per line:

    // comment
    (NumberOfResolutions 3)
    (FixedImagePyramid "FixedSmoothingImagePyramid")
    (ShrinkFactors 4 2 1)

and are read with ``itk.ParameterObject``, which yields every value as a
string.  Lookups go to the command line first, then the parameter file.
A missing key or index yields the supplied default, never an error.
"""

from pathlib import Path

import itk

from multires_mask.errors import ParameterFileError


# ---------------------------------------------------------------------------
# Parameter file loading
# ---------------------------------------------------------------------------
def load_parameter_file(path):
    """Read an elastix parameter file into {key: [str values]}.

    Only the first parameter map is used; the lifecycle reads a single
    registration's settings.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"No such parameter file: {path}")

    parameter_object = itk.ParameterObject.New()
    try:
        parameter_object.ReadParameterFile(str(path))
    except RuntimeError as e:
        raise ParameterFileError(path, str(e).strip()) from e

    if parameter_object.GetNumberOfParameterMaps() == 0:
        return {}
    parameter_map = parameter_object.GetParameterMap(0)
    return {key: list(values) for key, values in parameter_map.items()}


# ---------------------------------------------------------------------------
# Configuration store
# ---------------------------------------------------------------------------
class Configuration:
    """Key -> value store queried by ``(key, index, default)``.

    ``command_line`` maps option names (with or without the leading dash)
    to a string value.  ``parameters`` maps parameter-file keys to a list
    of values.
    """

    def __init__(self, command_line=None, parameters=None):
        self._command_line = {
            k.lstrip("-"): ("" if v is None else str(v))
            for k, v in (command_line or {}).items()
        }
        self._parameters = {k: list(v) for k, v in (parameters or {}).items()}

    @classmethod
    def from_files(cls, command_line=None, parameter_file=None):
        params = load_parameter_file(parameter_file) if parameter_file else {}
        return cls(command_line=command_line, parameters=params)

    def get_command_line_argument(self, key):
        """Command-line value for ``key`` (e.g. "-fMask"), "" when absent."""
        return self._command_line.get(key.lstrip("-"), "")

    def read_parameter(self, key, index=0, default=None):
        """Value ``index`` of ``key``, coerced to the default's type."""
        name = key.lstrip("-")
        if name in self._command_line and index == 0:
            value = self._command_line[name]
        else:
            values = self._parameters.get(name)
            if values is None or not 0 <= index < len(values):
                return default
            value = values[index]

        if default is None or isinstance(value, type(default)):
            return value
        return _coerce(value, type(default), key)


def _coerce(value, target, key):
    if target is bool:
        if isinstance(value, str):
            low = value.lower()
            if low in ("true", "false"):
                return low == "true"
            raise ValueError(f"{key}: cannot read {value!r} as bool")
        return bool(value)
    try:
        if target is int and isinstance(value, float):
            if not value.is_integer():
                raise ValueError
            return int(value)
        return target(value)
    except ValueError:
        raise ValueError(
            f"{key}: cannot read {value!r} as {target.__name__}") from None
