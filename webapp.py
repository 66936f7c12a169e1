#!/usr/bin/env python3
from __future__ import annotations

import html as _html
import logging
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import quote

from flask import Flask, abort, render_template_string

from config_loader import DEFAULT_CONFIG, load_config
from rulebook_errors import LexError
from rulebook_to_html import render_rulebook_to_html_body

logger = logging.getLogger(__name__)

BASE_DIR = Path.cwd()
CONFIG_PATH = BASE_DIR / "config.yml"
RULEBOOK_DIR = BASE_DIR / "rulebooks"
RULEBOOK_SUFFIX = ".rulebook"

app = Flask(__name__, static_folder="static", static_url_path="/static")
cfg = load_config(CONFIG_PATH) if CONFIG_PATH.is_file() else DEFAULT_CONFIG


LAYOUT_TEMPLATE = """
<!doctype html>
<html>
<head>
  <meta charset="utf-8">
  <title>{{ page_title }}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <link rel="stylesheet" href="{{ stylesheet }}">
</head>
<body class="with-sidebar">
  <div class="layout">
    <aside class="sidebar">
      <div class="sidebar-title"><a href="/">Rulebook Viewer</a></div>

      <div class="sidebar-section">
        <div class="sidebar-label">rulebooks/</div>
        {{ file_tree|safe }}
      </div>
    </aside>

    <main class="content">
    {{ content|safe }}
    </main>
  </div>
</body>
</html>
"""


@dataclass
class FileTreeNode:
    dirs: dict[str, "FileTreeNode"] = field(default_factory=dict)
    files: list[str] = field(default_factory=list)


def _insert_path(root: FileTreeNode, rel_parts: tuple[str, ...]) -> None:
    node = root
    for part in rel_parts[:-1]:
        node = node.dirs.setdefault(part, FileTreeNode())
    node.files.append(rel_parts[-1])


def build_rulebook_tree(rulebook_dir: Path) -> FileTreeNode:
    root = FileTreeNode()
    if not rulebook_dir.exists():
        return root

    for p in sorted(rulebook_dir.glob(f"**/*{RULEBOOK_SUFFIX}")):
        # skip hidden dirs
        if any(seg.startswith(".") for seg in p.relative_to(rulebook_dir).parts):
            continue
        _insert_path(root, p.relative_to(rulebook_dir).parts)
    return root


def render_tree_html(node: FileTreeNode, *, prefix: str, current_file: str) -> str:
    """
    prefix: path inside rulebooks/ (e.g. '' or 'core')
    current_file: path inside rulebooks/ of the file being viewed
    """
    out: list[str] = []

    for dirname in sorted(node.dirs.keys()):
        child_prefix = f"{prefix}/{dirname}".strip("/")
        open_attr = " open" if current_file.startswith(child_prefix + "/") else ""
        out.append(f'<details class="fm-dir"{open_attr}>')
        out.append(f"<summary>{_html.escape(dirname)}/</summary>")
        out.append('<div class="fm-children">')
        out.append(render_tree_html(node.dirs[dirname], prefix=child_prefix, current_file=current_file))
        out.append("</div></details>")

    for fname in sorted(node.files):
        rel = f"{prefix}/{fname}".strip("/")
        href = "/view/" + quote(rel)
        active = " active" if rel == current_file else ""
        out.append(f'<div class="fm-file{active}"><a href="{href}">{_html.escape(fname)}</a></div>')

    return "".join(out)


def _render_page(*, title: str, content: str, current_file: str) -> str:
    tree = build_rulebook_tree(RULEBOOK_DIR)
    return render_template_string(
        LAYOUT_TEMPLATE,
        page_title=title,
        stylesheet=cfg.stylesheet,
        file_tree=render_tree_html(tree, prefix="", current_file=current_file),
        content=content,
    )


@app.route("/")
def index():
    content = """
      <h1>Rulebook Viewer</h1>
      <p>Choose a rulebook on the left.</p>
    """
    return _render_page(title="Rulebook Viewer", content=content, current_file="")


@app.route("/view/<path:filename>")
def view_file(filename: str):
    root = RULEBOOK_DIR.resolve()
    rulebook_path = (root / filename).resolve()
    try:
        rulebook_path.relative_to(root)
    except ValueError:
        abort(404)

    if not rulebook_path.is_file() or rulebook_path.suffix.lower() != RULEBOOK_SUFFIX:
        abort(404)

    try:
        body_html = render_rulebook_to_html_body(rulebook_path, cfg)
    except LexError as e:
        logger.warning("cannot render %s: %s", rulebook_path, e)
        return f"<p class='error'>{_html.escape(str(e))}</p>", 422

    current_rel = str(rulebook_path.relative_to(root).as_posix())
    return _render_page(title=rulebook_path.stem, content=body_html, current_file=current_rel)


if __name__ == "__main__":
    app.run(debug=False)
