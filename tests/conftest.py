"""Shared pytest fixtures for the cardsmith test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from cardsmith.models.pipeline import PipelineConfig
from helpers import FakeLLM, words


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def pipeline_config() -> PipelineConfig:
    """Defaults, but with the extraction timeout disabled for determinism."""
    return PipelineConfig(extraction_timeout=None)


@pytest.fixture
def prewritten_markdown() -> str:
    """A curated Q&A file in the style of popular interview-question repos."""
    return """# JavaScript Interview Questions

### 1. What is a closure?

**Answer:** A closure is a function bundled together with references to its
surrounding lexical environment, so it can access variables from an outer
function after that function has returned.

```js
function counter() {
  let n = 0;
  return () => ++n;
}
```

### 2. What is the difference between `==` and `===`?

<details><summary>Answer</summary>
`===` compares without type coercion, while `==` converts both operands to a
common type before comparing them.
</details>

### 3. What is hoisting?

Hoisting is JavaScript's behaviour of moving declarations to the top of
their scope before code execution, so a `var` can be referenced before it
is declared and evaluates to undefined.
"""


@pytest.fixture
def plain_article_markdown() -> str:
    """Prose with no inline answers; roughly 400 words across three sections."""
    return "\n".join(
        [
            "# Understanding the Event Loop",
            words(120, "loop"),
            "## Microtasks",
            words(140, "micro"),
            "## Macrotasks",
            words(140, "macro"),
        ]
    )
