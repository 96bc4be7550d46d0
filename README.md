# kbcore

Core library for a structured, file-based knowledge base of project
expertise. Records live in `.kb/expertise/<domain>.jsonl` inside a
project, one JSON object per line, and are meant to be read and written
by coding agents and their tools.

## Installation

```bash
pip install .
```

The only runtime dependency is PyYAML, used for `.kb/kb.config.yaml`.

## Record types

Every record is an `ExpertiseRecord` of one of six kinds, each with its
own text fields:

| Class        | Fields                                  |
|--------------|-----------------------------------------|
| `Convention` | `content`                               |
| `Pattern`    | `name`, `description`, `files`          |
| `Failure`    | `description`, `resolution`             |
| `Decision`   | `title`, `rationale`                    |
| `Reference`  | `name`, `description`, `files`          |
| `Guide`      | `name`, `description`                   |

All records also have a `Classification` (foundational, tactical or
observational) and a `recorded_at` RFC 3339 timestamp, and may carry an
`id`, `Evidence`, `tags`, `relates_to`, `supersedes` and a list of
`Outcome`s. `to_dict` / `from_dict` convert records to and from their
JSON form; malformed data raises `ValidationError`.

Record IDs are deterministic: `generate_record_id` in `kbcore.ids`
returns `mx-` followed by the first six hex characters of a SHA-256
hash of the record type and its key field.

## Usage

```python
from pathlib import Path

from kbcore.config import init_kb_dir, read_config, write_config, get_expertise_path
from kbcore.model import Convention, Classification
from kbcore.records_io import append_record, read_expertise_file
from kbcore.search import search_records
from kbcore.formatting import format_domain_expertise, format_prime_output

project = Path(".")
init_kb_dir(project)

config = read_config(project)
config.domains.append("backend")
write_config(config, project)

path = get_expertise_path("backend", project)
append_record(path, Convention(
    content="Use structured logging everywhere",
    classification=Classification.FOUNDATIONAL,
    recorded_at="2024-01-01T00:00:00.000Z",
))

records = read_expertise_file(path)
hits = search_records(records, "logging")
print(format_prime_output([format_domain_expertise("backend", records, None, False)]))
```

`init_kb_dir` creates `.kb/`, `.kb/expertise/` and `.kb/sessions/`,
writes a default config only if none exists, adds a `merge=union` line
for the expertise files to `.gitattributes`, and adds the session and
log files to `.gitignore`.

## Modules

- `kbcore.config`: paths inside `.kb/`, reading and writing
  `kb.config.yaml` (`KbConfig` with `Governance` and `ShelfLife`),
  domain-name validation and existence checks.
- `kbcore.records_io`: `read_expertise_file` and `append_record`; the
  latter assigns an ID if the record has none and appends under the
  file lock.
- `kbcore.lock`: advisory `.lock` files next to a file, with stale-lock
  removal after 30 seconds and a 5 second timeout (`file_lock`
  context manager, `with_file_lock`).
- `kbcore.search`: BM25 ranking (`tokenize`, `search_bm25` with
  `Bm25Params`, `search_records`); results report which fields matched.
- `kbcore.filtering`: filter by type, classification or file, and
  `find_duplicate`.
- `kbcore.resolve`: `resolve_record_id` accepts `mx-abc123`, `abc123`
  or a unique prefix.
- `kbcore.scoring`: outcome counts, success rate and confirmation
  score, with `apply_confirmation_boost` and
  `sort_by_confirmation_score`.
- `kbcore.health`: `is_record_stale` and `calculate_domain_health`.
- `kbcore.budget`: `apply_budget` keeps the highest-priority records
  that fit a token budget; `format_budget_summary` describes the rest.
- `kbcore.formatting`: Markdown and compact domain sections, the
  priming documents, the session-end reminder and status output.
- `kbcore.alt_formats`: XML, plain-text and JSON renderings.
- `kbcore.check`: `extract_paths` and `check_references`, which report
  records mentioning file paths that do not exist.
- `kbcore.git`: changed files from `git diff` (runs the `git` program)
  and `filter_by_context`.
- `kbcore.session`: start, resume, end, list and load sessions stored
  as JSON under `.kb/sessions/`.
- `kbcore.access_log`, `kbcore.changelog`: append-only JSONL logs in
  `.kb/` with filtered queries.
- `kbcore.markers`: manage a `<!-- kb:start -->` / `<!-- kb:end -->`
  section inside a document.

Errors are raised as subclasses of `kbcore.errors.KbError`, such as
`NotInitializedError`, `DomainNotFoundError`, `RecordNotFoundError`,
`AmbiguousIdError` and `LockTimeoutError`.

## What this package does not do

This is a library only. It installs no `kb` command: the priming text
and reminders it produces mention `kb record`, `kb prime`, `kb sync`
and similar commands, but none of them is provided here. It also has
no functions to edit, delete or compact records already in an
expertise file; records can only be appended and read.

## Running the tests

```bash
pip install ".[test]"
pytest
```