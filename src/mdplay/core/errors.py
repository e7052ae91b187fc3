"""Exception types raised by the snippet pipeline"""


class MdplayError(Exception):
    """Base class for pipeline errors."""


class ModuleError(MdplayError):
    """Scaffolding or writing a generated module failed for one block."""


class TranspileError(MdplayError):
    """The component-script transpiler rejected its input or could not run."""


class UnknownPresetError(MdplayError, KeyError):
    """A preset name is not in the preset table."""

    def __str__(self) -> str:
        return f"Unknown preset: {self.args[0]}" if self.args else "Unknown preset"
