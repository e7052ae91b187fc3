"""Sequence-named module store: path layout, source wrapping, and on-disk scaffolding.

Layout under the build project root, for namespace `ns` and sequence number `n`:

    <root>/<category>/autogen/package.mill              created once
    <root>/<category>/autogen/<ns>/package.mill         created once
    <root>/<category>/autogen/<ns>/example<n>/package.mill    rewritten every run
    <root>/<category>/autogen/<ns>/example<n>/src/Main.scala  rewritten every run

The external build writes the linked script to

    <root>/<out>/<category>/autogen/<ns>/example<n>/<stage>/main.js
"""

from dataclasses import dataclass
from pathlib import Path

from mdplay.core.errors import ModuleError
from mdplay.core.models import Module, PreviewBlock
from mdplay.core.utils.hashing import content_hash
from mdplay.core.utils.slug import identifier
from mdplay.logging import get_logger


logger = get_logger("modules")

DESCRIPTOR_NAME = 'package.mill'
SOURCE_NAME = 'Main.scala'
OUTPUT_NAME = 'main.js'

PACKAGE_DESCRIPTOR = """\
package build.{package}
"""

MODULE_DESCRIPTOR = """\
package build.{package}

import mill._, scalalib._, scalajslib._
import mill.scalajslib.api._

object `package` extends ScalaJSModule {{
  def scalaVersion = "{scala_version}"
  def scalaJSVersion = "{scalajs_version}"
  def moduleKind = ModuleKind.ESModule
  def ivyDeps = Agg(ivy"org.scala-js::scalajs-dom::2.8.0")
}}
"""

SOURCE_TEMPLATE = """\
package {package}

import scala.scalajs.js
import org.scalajs.dom
import org.scalajs.dom.document

// Generated from snippet {sequence_number} of namespace "{namespace}".
{source}
"""


@dataclass(frozen=True)
class ModuleLayout:
    """Pure path functions of (namespace, sequence_number) under a fixed root."""
    root:        Path
    category:    str = 'examples'
    out_dir:     str = 'out'
    build_stage: str = 'fullLinkJS.dest'

    @property
    def autogen_dir(self) -> Path:
        return self.root / self.category / 'autogen'

    def namespace_dir(self, namespace: str) -> Path:
        return self.autogen_dir / _check_namespace(namespace)

    @staticmethod
    def module_name(sequence_number: int) -> str:
        if isinstance(sequence_number, bool) or not isinstance(sequence_number, int) or sequence_number < 1:
            raise ValueError(f"sequence number must be a positive int, got {sequence_number!r}")
        return f"example{sequence_number}"

    def module_dir(self, namespace: str, sequence_number: int) -> Path:
        return self.namespace_dir(namespace) / self.module_name(sequence_number)

    def package(self, namespace: str, sequence_number: int = None) -> str:
        """Dotted package of a namespace, or of one module when sequence_number is given."""
        parts = [self.category, 'autogen', _check_namespace(namespace)]
        if sequence_number is not None:
            parts.append(self.module_name(sequence_number))
        return '.'.join(parts)

    def expected_output_path(self, namespace: str, sequence_number: int) -> Path:
        return (
            self.root / self.out_dir / self.category / 'autogen'
            / _check_namespace(namespace) / self.module_name(sequence_number)
            / self.build_stage / OUTPUT_NAME
        )

    def module(self, namespace: str, sequence_number: int) -> Module:
        module_dir = self.module_dir(namespace, sequence_number)
        return Module(
            namespace=namespace,
            sequence_number=sequence_number,
            module_dir=module_dir,
            source_path=module_dir / 'src' / SOURCE_NAME,
            build_descriptor_path=module_dir / DESCRIPTOR_NAME,
            expected_output_path=self.expected_output_path(namespace, sequence_number),
        )


def _check_namespace(namespace: str) -> str:
    if not namespace or identifier(namespace) != namespace:
        raise ValueError(f"namespace must be a lowercase identifier, got {namespace!r}")
    return namespace


def wrap_source(layout: ModuleLayout, source: str, namespace: str, sequence_number: int) -> str:
    """Embed a snippet verbatim in the fixed Main.scala skeleton."""
    return SOURCE_TEMPLATE.format(
        package=layout.package(namespace, sequence_number),
        namespace=namespace,
        sequence_number=sequence_number,
        source=source,
    )


def _write_if_absent(path: Path, content: str) -> bool:
    """Create path with content unless it exists; True when this call created it."""
    try:
        with path.open('x', encoding='utf-8') as f:
            f.write(content)
    except FileExistsError:
        return False
    return True


def ensure_scaffolding(layout: ModuleLayout, namespace: str) -> None:
    """Create the shared autogen and namespace packages; existing descriptors are never touched.

    Safe to race: mkdir tolerates existing directories and descriptors use exclusive create.
    """
    ns_dir = layout.namespace_dir(namespace)
    ns_dir.mkdir(parents=True, exist_ok=True)
    packages = [
        (layout.autogen_dir, f"{layout.category}.autogen"),
        (ns_dir, layout.package(namespace)),
    ]
    for directory, package in packages:
        if _write_if_absent(directory / DESCRIPTOR_NAME, PACKAGE_DESCRIPTOR.format(package=package)):
            logger.debug("Created package descriptor %s", directory / DESCRIPTOR_NAME)


def generate_module(
    layout: ModuleLayout,
    namespace: str,
    sequence_number: int,
    source: str,
    hash_length: int = 12,
    scala_version: str = '3.3.4',
    scalajs_version: str = '1.17.0',
    ) -> tuple[PreviewBlock, Module]:
    """Materialize one snippet as a module ready for the external build.

    The module's source and descriptor are rewritten on every call (last content wins).
    Raises ModuleError for an invalid namespace or sequence number, and when a
    directory or file cannot be written.
    """
    try:
        module = layout.module(namespace, sequence_number)
        wrapped = wrap_source(layout, source, namespace, sequence_number)
    except ValueError as e:
        raise ModuleError(f"Cannot place module {namespace!r}/{sequence_number!r}: {e}") from e
    block = PreviewBlock(
        content_hash=content_hash(source, hash_length),
        sequence_number=sequence_number,
        namespace=namespace,
        source_code=source,
        wrapped_code=wrapped,
    )
    descriptor = MODULE_DESCRIPTOR.format(
        package=layout.package(namespace, sequence_number),
        scala_version=scala_version,
        scalajs_version=scalajs_version,
    )
    try:
        ensure_scaffolding(layout, namespace)
        module.source_path.parent.mkdir(parents=True, exist_ok=True)
        module.source_path.write_text(wrapped, encoding='utf-8')
        module.build_descriptor_path.write_text(descriptor, encoding='utf-8')
    except OSError as e:
        raise ModuleError(f"Failed to write module {module.module_dir}: {e}") from e
    logger.debug("Wrote module %s (hash %s)", module.module_dir, block.content_hash)
    return block, module
