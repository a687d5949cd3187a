# engram

Building blocks for keeping memory about a codebase. The package provides
symbol records with stable hashes and Markdown documents split into
sections. It splits large symbol bodies into chunks and records how symbols
change between syncs. A cascade marks annotations as stale when the code
they describe changes.

It has no dependencies beyond the standard library and needs Python 3.10 or
later.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Modules

### `engram.symbols`

This module holds the data model:

- `Symbol`, `Edge` and `ParseResult` are dataclasses.
- `SymbolKind` lists the symbol kinds: `function`, `method`, `class`,
  `struct`, `enum`, `trait`, `interface`, `module`, `import`,
  `type_alias`, `constant` and `variable`.
- `EdgeKind` lists the edge kinds: `CALLS`, `IMPORTS`, `INHERITS`,
  `IMPLEMENTS` and `USES`.

It also has the hashing helpers:

- `sha256_hex` returns the hex SHA-256 of a string's UTF-8 encoding.
- `make_symbol_id(file, name, kind)` depends on the file. The same code in
  two files gets two ids.
- `make_canonical_id(name, kind, body_hash)` does not depend on the file.
  The same code in two files gets one canonical id.
- `make_full_hash(signature, body, docstring)` covers the signature, the
  body and the docstring. A missing docstring counts as empty.

### `engram.languages`

`detect_language(path)` maps a file extension to a language name and
returns `None` for unknown extensions. The known languages are `rust`,
`python`, `typescript`, `javascript`, `go`, `java`, `c`, `cpp`, `ruby` and
`markdown`. The full table is in `SUPPORTED_EXTENSIONS`.

`discover_files(root)` walks a directory and returns a list of the files
with a known extension, in sorted walk order. It skips:

- hidden entries;
- the directories in `SKIPPED_DIRECTORIES`, such as `node_modules`,
  `target`, `.git`, `.venv`, `vendor`, `dist` and `build`;
- paths excluded by `.ignore` files;
- inside a git repository, paths excluded by `.gitignore` files, by
  `.git/info/exclude`, and by the user's global `git/ignore` file.

A missing `root` raises `FileNotFoundError`. If `root` is a single file,
the result is that file alone when its extension is known, and an empty
list otherwise.

### `engram.hierarchy`

`compute_scope_hierarchy(symbols)` sets `parent_id` and `scope_chain` on
each symbol in place. A symbol's parent is the other symbol with the
smallest line range that contains it.

`build_signature(full_text, body)` returns a definition's text up to its
body. If the body cannot be cut off that way, it returns the first line.

### `engram.markdown`

`parse_markdown(content, file_path)` turns each ATX heading, together with
the lines up to the next heading, into a `Symbol`:

- the symbol's kind is `module` and its language is `markdown`;
- its `docstring` holds the first 500 characters of the section.

A document that has text but no headings becomes a single symbol named
after the file's stem.

`parse_heading(line)` returns `(level, title)` for a heading of one to six
`#` characters that has a title, and `None` for anything else.

### `engram.chunking`

`chunk_symbol(symbol)` splits a body that holds more than `MAX_NWS_CHARS`
(500) non-whitespace characters into `Chunk`s. Splits fall at line
boundaries as judged by `is_boundary`. Each chunk inherits the symbol's
scope chain. The function returns an empty list when the body is small
enough, or when splitting would give only one chunk.

The helpers `count_nws` and `estimate_tokens` (about four characters per
token) are public.

### `engram.temporal`

`track_evolution(store, file, new_result)` compares the symbols the store
holds for `file` with a fresh `ParseResult`, matching them by name. It
logs each symbol as `created`, `modified` or `deleted`. Call it before
syncing the new result.

`detect_renames(store, deleted_files, created_files, parse_file, root)`
pairs a deleted file with a created file when at least half of the deleted
file's symbols have a body hash found in the new file. For each pair it:

- logs each matching symbol as `moved`;
- pairs the deleted file at most once.

`parse_file` is any callable that turns a path into a `ParseResult`.

Both functions work against any object that satisfies the
`EvolutionStore` protocol.

### `engram.cascade`

`run_cascade(store, changed_symbol_id)` works in three steps:

1. It marks the symbol's active annotations as stale when their recorded
   hash no longer matches the symbol's `full_hash`.
2. It reactivates stale annotations whose hash matches again, with
   confidence 1.0.
3. It walks the callers breadth first. On their annotations it lowers
   confidence by `BASE_REDUCTION` (0.3) at distance one, halving with each
   further hop, and never below 0.0. Each symbol is visited once.

Every change is returned in a `CascadeResult` as `CascadeEntry` items and
written to the store's cascade log. An unknown symbol raises `LookupError`.

`cascade_file(store, file)` runs the cascade for each symbol of a file
that has annotations, or whose direct callers have annotations. It returns
only the results that changed something.

Both functions work against any object that satisfies the
`AnnotationStore` protocol.

## Example

```python
from engram.chunking import chunk_symbol
from engram.markdown import parse_markdown

result = parse_markdown("# Title\n\nIntro.\n\n## Usage\n\nRun it.\n", "README.md")
for symbol in result.symbols:
    print(symbol.name, symbol.line_start, symbol.line_end, symbol.scope_chain)
    print(len(chunk_symbol(symbol)))  # 0: small sections are not split
```

## What this package does not do

- **No parsing of programming languages.** The package has no parser that
  turns Rust, Python, Go and similar files into symbols and call edges.
  Only Markdown is parsed. For other languages, `Symbol`, `Edge` and
  `ParseResult` records must come from elsewhere.
- **No storage.** There is no database. `EvolutionStore` and
  `AnnotationStore` are protocols that the caller implements.
- **No command line, file watcher, server or search.** The package is a
  library only.