"""Fence annotation parsing into closed Directive records"""

import posixpath
import re
from typing import Optional

from mdplay.core.models import Directive


FILE_EXTENSIONS = ('.html', '.css', '.js', '.jsx', '.ts', '.tsx', '.scala')
FLAG_TOKENS = ('hidden', 'active')
REF_PREFIX = 'ref='

_SPLIT_RE = re.compile(r'[ ,]+')


def split_info(info: Optional[str]) -> tuple[str, str]:
    """Split a fence info string into (language tag, annotation text)."""
    parts = (info or '').strip().split(maxsplit=1)
    if not parts:
        return '', ''
    return parts[0], parts[1] if len(parts) > 1 else ''


def parse_directive(meta: Optional[str], preview_token: str = 'preview') -> Directive:
    """Parse annotation tokens left to right; the last match wins per field.

    Unknown tokens are ignored. A `ref=<path>` token sets both external_ref and
    target_file_name (the basename of <path>). `preview_token` is the word that
    marks a fence as a preview.
    """
    fields = {
        'target_file_name': None,
        'external_ref': None,
        'hidden': False,
        'active': False,
        'preview': False,
    }
    for tok in _SPLIT_RE.split(meta or ''):
        if not tok:
            continue
        if tok.startswith(REF_PREFIX):
            ref = tok[len(REF_PREFIX):]
            name = posixpath.basename(ref.replace('\\', '/'))
            if name:
                fields['external_ref'] = ref
                fields['target_file_name'] = name
        elif tok == preview_token:
            fields['preview'] = True
        elif tok.endswith(FILE_EXTENSIONS):
            fields['target_file_name'] = tok
        elif tok in FLAG_TOKENS:
            fields[tok] = True
    return Directive(**fields)
