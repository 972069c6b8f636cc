from __future__ import annotations

import base64
import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from exorcist.models import RewriteOptions

# Absolute prefix baked into the fixture maps.
SOURCE_BASE = "/Users/dev/projects/exorcist"


def encode_inline(map_data: dict[str, object]) -> str:
    payload = base64.b64encode(json.dumps(map_data).encode("utf-8")).decode("ascii")
    return f"data:application/json;charset=utf-8;base64,{payload}"


@pytest.fixture
def source_base() -> str:
    return SOURCE_BASE


@pytest.fixture
def script_map() -> dict[str, object]:
    return {
        "version": 3,
        "file": "generated.js",
        "sources": [
            f"{SOURCE_BASE}/node_modules/browser-pack/_prelude.js",
            f"{SOURCE_BASE}/example/main.js",
            f"{SOURCE_BASE}/example/foo.js",
            f"{SOURCE_BASE}/example/bar.js",
        ],
        "names": [],
        "mappings": "AAAA;ACAA;AACA;ACDA;AACA",
        "sourcesContent": [
            "(function e(t,n,r){})",
            "var foo = require('./foo');\nconsole.log(foo());",
            "module.exports = function () { return require('./bar') };",
            "module.exports = 'bar';",
        ],
    }


@pytest.fixture
def style_map() -> dict[str, object]:
    return {
        "version": 3,
        "file": "to.css",
        "sources": [f"{SOURCE_BASE}/styles/from.css", f"{SOURCE_BASE}/styles/partial.css"],
        "names": [],
        "mappings": "AAAA,IAAI;ACAJ",
        "sourcesContent": ["a { color: red }", ".b { color: blue }"],
    }


@pytest.fixture
def script_body() -> str:
    return "\n".join(
        [
            "(function e(t,n,r){})({1:[function(require,module,exports){",
            "var foo = require('./foo');",
            "console.log(foo());",
            "},{\"./foo\":2}],2:[function(require,module,exports){",
            "module.exports = function () { return require('./bar') };",
            "},{\"./bar\":3}],3:[function(require,module,exports){",
            "module.exports = 'bar';",
            "},{}]},{},[1]);",
        ]
    ) + "\n"


@pytest.fixture
def script_bundle(script_body: str, script_map: dict[str, object]) -> str:
    return f"{script_body}//# sourceMappingURL={encode_inline(script_map)}\n"


@pytest.fixture
def style_bundle(style_map: dict[str, object]) -> str:
    body = "a {\n  color: red;\n}\n\n.b {\n  color: blue;\n}\n"
    return f"{body}/*# sourceMappingURL={encode_inline(style_map)} */\n"


@pytest.fixture
def nomap_bundle(script_body: str) -> str:
    return script_body


@pytest.fixture
def map_path(tmp_path: Path) -> Path:
    return tmp_path / "bundle.js.map"


@pytest.fixture
def path_options(map_path: Path) -> RewriteOptions:
    return RewriteOptions(destination=map_path)


@pytest.fixture
def inline_map():
    return encode_inline
