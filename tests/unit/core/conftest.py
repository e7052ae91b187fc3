"""Shared fixtures for core unit tests"""

import pytest
from markdown_it import MarkdownIt


SAMPLE_MD = """\
# Guide

Intro paragraph.

```scala preview
dom.document.body.append("one")
```

```scala
// not a preview
```

<Playground preset="tailwind">

```html index.html
<p class="p-4">hi</p>
```

```css index.css hidden
p { color: red; }
```

</Playground>

```js preview
// wrong language, not counted
```

```scala Main.scala, preview
dom.document.body.append("two")
```
"""


@pytest.fixture(name="parser")
def parser_fixture():
    return MarkdownIt("gfm-like", options_update={"linkify": False})


@pytest.fixture(name="sample_tokens")
def sample_tokens_fixture(parser):
    return parser.parse(SAMPLE_MD)


@pytest.fixture(name="sample_md")
def sample_md_fixture():
    return SAMPLE_MD
