"""Sandbox document assembly: presets, immutable builder, and component-script transpiling.

`PlaygroundBuilder.build()` is a pure function of its file set, config, and
arguments (the transpiler aside), so identical inputs give byte-identical
documents.
"""

import subprocess
from collections.abc import Iterable, Mapping
from typing import Optional, Protocol, Union

from mdplay.core.errors import TranspileError, UnknownPresetError
from mdplay.core.models import FileEntry, FileSet, PlaygroundConfig, PlaygroundPreset


HTML_PATH = '/index.html'
CSS_PATHS = ('/index.css', '/styles.css')
SCRIPT_PATH = '/index.js'
FALLBACK_SCRIPT_PATH = '/main.js'

TAILWIND_HEAD = '<script src="https://cdn.jsdelivr.net/npm/@tailwindcss/browser@4"></script>'

IMPORT_MAP_HEAD = """\
<script type="importmap">
      {
        "imports": {
          "react": "https://esm.sh/react@19",
          "react-dom": "https://esm.sh/react-dom@19",
          "react-dom/client": "https://esm.sh/react-dom@19/client",
          "react/jsx-runtime": "https://esm.sh/react@19/jsx-runtime",
          "clsx": "https://esm.sh/clsx@2"
        }
      }
    </script>"""

ROOT_CONTAINER = '<div id="root"></div>'

RESET_STYLES = """\
<style>
      * {
        box-sizing: border-box;
      }
      body {
        margin: 0;
      }
    </style>"""

DOCUMENT_TEMPLATE = """\
<!DOCTYPE html>
<html{html_attr}>
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    {reset}
    <style>{css}</style>
    {head}
  </head>
  <body>
    {body}
    {scripts}
  </body>
</html>
"""


PRESETS: dict[str, PlaygroundPreset] = {
    'vanilla': PlaygroundPreset(
        name='Vanilla JavaScript',
        description='Pure HTML, CSS, and JavaScript',
        config=PlaygroundConfig(include_reset_styles=True),
    ),
    'tailwind': PlaygroundPreset(
        name='Tailwind CSS',
        description='HTML, CSS, JavaScript with Tailwind CSS',
        config=PlaygroundConfig(support_tailwind=True, include_reset_styles=True),
    ),
    'react': PlaygroundPreset(
        name='React',
        description='React with JSX/TSX support and Tailwind CSS',
        config=PlaygroundConfig(
            support_tailwind=True,
            support_component_framework=True,
            include_reset_styles=True,
            include_root_container=True,
        ),
    ),
    'react-minimal': PlaygroundPreset(
        name='React Minimal',
        description='React with JSX/TSX support, no additional styling',
        config=PlaygroundConfig(
            support_component_framework=True,
            include_reset_styles=True,
            include_root_container=True,
        ),
    ),
    'vanilla-no-reset': PlaygroundPreset(
        name='Vanilla (No Reset)',
        description='Pure HTML, CSS, and JavaScript without CSS reset',
        config=PlaygroundConfig(include_reset_styles=False),
    ),
}

DEFAULT_PRESET = 'vanilla'


def get_preset_config(name: str) -> PlaygroundConfig:
    """Return the config of a named preset; raises UnknownPresetError."""
    try:
        return PRESETS[name].config
    except KeyError:
        raise UnknownPresetError(name) from None


class Transpiler(Protocol):
    def __call__(self, source: str) -> str:
        """Turn component-syntax script (JSX/TSX) into a plain ES module."""


class EsbuildTranspiler:
    """Run the esbuild executable over stdin with automatic JSX runtime and ESM output."""

    def __init__(self, command: str = 'esbuild', import_source: str = 'react'):
        self.command = command
        self.import_source = import_source

    def args(self) -> list[str]:
        return [
            self.command,
            '--loader=tsx',
            '--jsx=automatic',
            f'--jsx-import-source={self.import_source}',
            '--format=esm',
            '--log-level=error',
        ]

    def __call__(self, source: str) -> str:
        try:
            result = subprocess.run(
                self.args(), input=source, capture_output=True, text=True, check=True,
            )
        except FileNotFoundError as e:
            raise TranspileError(f"Transpiler not found: {self.command}") from e
        except subprocess.CalledProcessError as e:
            raise TranspileError(f"Transpile failed: {e.stderr.strip() or e}") from e
        return result.stdout


def _code(files: Mapping[str, FileEntry], *paths: str) -> str:
    """Code of the first present, non-empty path."""
    for path in paths:
        entry = files.get(path)
        if entry is not None and entry.code:
            return entry.code
    return ''


def _module_script(code: str) -> str:
    return f'<script type="module">{code}</script>' if code else ''


class PlaygroundBuilder:
    """Immutable sandbox document builder; every with_* call returns a new builder."""

    __slots__ = ('_config', '_transpiler')

    def __init__(
        self,
        preset_or_config: Union[str, PlaygroundConfig, None] = None,
        transpiler: Optional[Transpiler] = None,
        ):
        if isinstance(preset_or_config, str):
            config = get_preset_config(preset_or_config)
        elif preset_or_config is None:
            config = get_preset_config(DEFAULT_PRESET)
        else:
            config = preset_or_config
        object.__setattr__(self, '_config', config)
        object.__setattr__(self, '_transpiler', transpiler)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def config(self) -> PlaygroundConfig:
        return self._config

    def with_config(self, **overrides) -> 'PlaygroundBuilder':
        unknown = set(overrides) - set(PlaygroundConfig.model_fields)
        if unknown:
            raise TypeError(f"Unknown config field(s): {', '.join(sorted(unknown))}")
        if 'additional_head' in overrides:
            overrides['additional_head'] = tuple(overrides['additional_head'])
        return PlaygroundBuilder(self._config.model_copy(update=overrides), self._transpiler)

    def with_transpiler(self, transpiler: Optional[Transpiler]) -> 'PlaygroundBuilder':
        return PlaygroundBuilder(self._config, transpiler)

    def with_tailwind(self, enabled: bool = True) -> 'PlaygroundBuilder':
        return self.with_config(support_tailwind=enabled)

    def with_component_framework(self, enabled: bool = True) -> 'PlaygroundBuilder':
        return self.with_config(support_component_framework=enabled, include_root_container=enabled)

    def with_reset_styles(self, enabled: bool = True) -> 'PlaygroundBuilder':
        return self.with_config(include_reset_styles=enabled)

    def with_root_container(self, enabled: bool = True) -> 'PlaygroundBuilder':
        return self.with_config(include_root_container=enabled)

    def with_additional_head(self, head: Union[str, Iterable[str]]) -> 'PlaygroundBuilder':
        extra = (head,) if isinstance(head, str) else tuple(head)
        return self.with_config(additional_head=self._config.additional_head + extra)

    def _transpile(self, source: str) -> str:
        transpiler = self._transpiler or EsbuildTranspiler()
        return transpiler(source)

    def build(
        self,
        files: FileSet,
        head: Optional[Iterable[str]] = None,
        html_attr: str = '',
        ) -> str:
        """Compose one self-contained sandbox document.

        Raises TranspileError when component-framework support is on and the
        primary script cannot be transpiled.
        """
        cfg = self._config
        html = _code(files, HTML_PATH)
        css = _code(files, *CSS_PATHS)
        js = _code(files, SCRIPT_PATH)
        fallback_js = _code(files, FALLBACK_SCRIPT_PATH)

        head_content = [*cfg.additional_head, *(head or ())]
        if cfg.support_tailwind:
            head_content.append(TAILWIND_HEAD)
        if cfg.support_component_framework:
            head_content.append(IMPORT_MAP_HEAD)
            if js:
                js = self._transpile(js)

        body = html + (ROOT_CONTAINER if cfg.include_root_container else '')
        scripts = _module_script(js) or _module_script(fallback_js)

        return DOCUMENT_TEMPLATE.format(
            html_attr=f' {html_attr.strip()}' if html_attr and html_attr.strip() else '',
            reset=RESET_STYLES if cfg.include_reset_styles else '',
            css=css,
            head='\n    '.join(head_content),
            body=body,
            scripts=scripts,
        )


def create_playground_builder(
    preset_or_config: Union[str, PlaygroundConfig, None] = None,
    transpiler: Optional[Transpiler] = None,
    ) -> PlaygroundBuilder:
    return PlaygroundBuilder(preset_or_config, transpiler)


def build_playground_content(
    files: FileSet,
    preset_or_config: Union[str, PlaygroundConfig, None] = None,
    transpiler: Optional[Transpiler] = None,
    ) -> str:
    """Assemble a sandbox document for files with a preset or explicit config."""
    return PlaygroundBuilder(preset_or_config, transpiler).build(files)
