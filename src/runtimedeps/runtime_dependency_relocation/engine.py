"""
Rewrites the module names used by an archive from one prefix to another.

The rewrite is token based and is driven by the ``tokenize_rt`` module handed in by
the relocator, which acquires it at run time like any other dependency. For every
member of the archive:

- the member path is moved when its leading segments match a rule
  (``a/b/c.py`` with ``a -> x.y.a`` becomes ``x/y/a/b/c.py``);
- Python sources have their absolute imports and dotted-name string literals
  rewritten;
- everything else is copied unchanged.

The longest matching rule wins, so a rule may move a sub-package out of a package
that stays in place (``a.sub -> x.sub``); ``from a import sub`` and ``import a.sub``
keep binding the same names after such a move. Relative imports are left alone.
"""

import os
import pathlib
import re
import tokenize
import zipfile
from typing import Dict, List, Optional, Tuple

SOURCE_SUFFIXES = (".py", ".pyi")
MODULE_SUFFIXES = SOURCE_SUFFIXES + (".pyc", ".so", ".pyd")
PARTIAL_SUFFIX = ".part"

DOTTED_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*")
STATEMENT_BOUNDARIES = ("NEWLINE", "INDENT", "DEDENT")


class ModuleRemapper:
    """
    Applies relocation rules to dotted module names split into segments.
    """

    def __init__(self, mapping: Dict[str, str]):
        self.rules: List[Tuple[List[str], List[str]]] = sorted(
            ((from_prefix.split("."), to_prefix.split(".")) for from_prefix, to_prefix in mapping.items()),
            key=lambda rule: len(rule[0]),
            reverse=True,
        )

    def remap(self, parts: List[str]) -> List[str]:
        for from_parts, to_parts in self.rules:
            if parts[: len(from_parts)] == from_parts:
                return to_parts + parts[len(from_parts):]
        return parts

    def remap_dotted(self, name: str) -> str:
        return ".".join(self.remap(name.split(".")))


class SourceRewriter:
    """
    Rewrites module references in a single Python source.
    """

    def __init__(self, tokenize_rt, remapper: ModuleRemapper):
        self.tokenize_rt = tokenize_rt
        self.remapper = remapper
        self.non_coding = tokenize_rt.NON_CODING_TOKENS

    def rewrite(self, src: str) -> str:
        tokens = self.tokenize_rt.src_to_tokens(src)
        return self.tokenize_rt.tokens_to_src(self._rewrite_tokens(tokens))

    def _token(self, name: str, src: str):
        return self.tokenize_rt.Token(name, src)

    def _is_op(self, token, src: str) -> bool:
        return token.name == "OP" and token.src == src

    def _copy_non_coding(self, tokens, i: int, out: list) -> int:
        while i < len(tokens) and tokens[i].name in self.non_coding:
            out.append(tokens[i])
            i += 1
        return i

    def _read_dotted(self, tokens, i: int) -> Tuple[int, Optional[List[str]]]:
        """
        Read ``NAME ('.' NAME)*`` starting at ``i``.

        Returns the index after the name and its segments; segments are None for a
        relative module name.
        """
        if i >= len(tokens) or tokens[i].name != "NAME":
            return i, None

        parts = [tokens[i].src]
        i += 1
        while True:
            j = i
            while j < len(tokens) and tokens[j].name in self.non_coding:
                j += 1
            if j + 1 < len(tokens) and self._is_op(tokens[j], ".") and tokens[j + 1].name == "NAME":
                parts.append(tokens[j + 1].src)
                i = j + 2
            else:
                return i, parts

    def _skip_non_coding(self, tokens, i: int) -> int:
        while i < len(tokens) and tokens[i].name in self.non_coding:
            i += 1
        return i

    def _next_coding(self, tokens, i: int):
        i = self._skip_non_coding(tokens, i)
        return tokens[i] if i < len(tokens) else None

    def _is_keyword(self, tokens, i: int, keyword: str) -> bool:
        return i < len(tokens) and tokens[i].name == "NAME" and tokens[i].src == keyword

    def _read_imported_names(self, tokens, i: int) -> Tuple[int, List[Tuple[str, Optional[str]]]]:
        """
        Read the ``import a [as b], ...`` part of a from-import starting at ``i``.

        Returns the index after the last name read and the names with their aliases.
        Star imports and anything unexpected give no names.
        """
        i = self._skip_non_coding(tokens, i)
        if not self._is_keyword(tokens, i, "import"):
            return i, []
        i = self._skip_non_coding(tokens, i + 1)
        parenthesized = i < len(tokens) and self._is_op(tokens[i], "(")
        if parenthesized:
            i = self._skip_non_coding(tokens, i + 1)

        names = []
        end = i
        while i < len(tokens) and tokens[i].name == "NAME":
            name, alias = tokens[i].src, None
            end = i + 1
            i = self._skip_non_coding(tokens, end)
            if self._is_keyword(tokens, i, "as"):
                i = self._skip_non_coding(tokens, i + 1)
                alias = tokens[i].src
                end = i + 1
                i = self._skip_non_coding(tokens, end)
            names.append((name, alias))
            if i < len(tokens) and self._is_op(tokens[i], ","):
                end = i + 1
                i = self._skip_non_coding(tokens, end)
            else:
                break

        if parenthesized:
            if i >= len(tokens) or not self._is_op(tokens[i], ")"):
                return i, []
            end = i + 1
        return end, names

    def _is_moved_below(self, parts: List[str], name: str) -> bool:
        # a rule deeper than the module moves the imported name somewhere else
        return self.remapper.remap(parts + [name]) != self.remapper.remap(parts) + [name]

    def _from_statements(self, parts: List[str], names, moved) -> List[str]:
        statements = []
        kept = [n for n in names if n not in moved]
        if kept:
            imported = ", ".join(name if alias is None else f"{name} as {alias}" for name, alias in kept)
            statements.append(f"from {'.'.join(self.remapper.remap(parts))} import {imported}")
        for name, alias in moved:
            target = self.remapper.remap(parts + [name])
            if len(target) == 1:
                statements.append(f"import {target[0]} as {alias or name}")
            else:
                statements.append(f"from {'.'.join(target[:-1])} import {target[-1]} as {alias or name}")
        return statements

    def _rewrite_from(self, tokens, i: int, out: list) -> int:
        start = len(out) - 1
        i = self._copy_non_coding(tokens, i, out)
        j, parts = self._read_dotted(tokens, i)
        if parts is None:
            return i

        end, names = self._read_imported_names(tokens, j)
        moved = [(name, alias) for name, alias in names if self._is_moved_below(parts, name)]
        if not moved:
            out.append(self._token("NAME", ".".join(self.remapper.remap(parts))))
            return j

        # split the statement so every moved name is imported from its new parent
        del out[start:]
        out.append(self._token("CODE", "; ".join(self._from_statements(parts, names, moved))))
        return end

    def _binding_statements(self, parts: List[str]) -> List[str]:
        """
        Statements that keep ``parts[0]`` bound the way ``import a.b.c`` binds it,
        for every segment of ``parts`` that a rule moves.
        """
        statements = []
        new_parts = self.remapper.remap(parts)
        for depth in range(1, len(parts) + 1):
            inherited = self.remapper.remap(parts[: depth - 1]) + [parts[depth - 1]]
            moved = self.remapper.remap(parts[:depth])
            if moved == inherited:
                continue
            if depth == 1:
                statements.append(f"import {'.'.join(moved)} as {parts[0]}")
                continue
            statements.append(f"import {'.'.join(self.remapper.remap(parts[: depth - 1]))}")
            if new_parts[: len(moved)] != moved:
                statements.append(f"import {'.'.join(moved)}")
            statements.append(f"{'.'.join(parts[:depth])} = {'.'.join(moved)}")
        return statements

    def _rewrite_import(self, tokens, i: int, out: list) -> int:
        extra_statements = []
        while True:
            i = self._copy_non_coding(tokens, i, out)
            j, parts = self._read_dotted(tokens, i)
            if parts is None:
                break

            new_parts = self.remapper.remap(parts)
            new_name = ".".join(new_parts)
            following = self._next_coding(tokens, j)
            aliased = following is not None and following.name == "NAME" and following.src == "as"
            if new_parts != parts and not aliased:
                # keep the name the statement binds
                if len(parts) == 1:
                    new_name = f"{new_name} as {parts[0]}"
                else:
                    extra_statements.extend(self._binding_statements(parts))
            out.append(self._token("NAME", new_name))
            i = j

            while i < len(tokens) and tokens[i].name not in STATEMENT_BOUNDARIES + ("ENDMARKER",):
                if self._is_op(tokens[i], ",") or self._is_op(tokens[i], ";"):
                    break
                out.append(tokens[i])
                i += 1

            if i < len(tokens) and self._is_op(tokens[i], ","):
                out.append(tokens[i])
                i += 1
                continue
            break

        if extra_statements:
            position = len(out)
            while position > 0 and out[position - 1].name in self.non_coding:
                position -= 1
            out.insert(position, self._token("CODE", "; " + "; ".join(extra_statements)))
        return i

    def _rewrite_string(self, token):
        prefix, rest = self.tokenize_rt.parse_string_literal(token.src)
        if set(prefix.lower()) & {"b", "f"}:
            return token

        for quote in ('"""', "'''", '"', "'"):
            if rest.startswith(quote) and rest.endswith(quote) and len(rest) >= 2 * len(quote):
                body = rest[len(quote):-len(quote)]
                break
        else:
            return token

        if not DOTTED_NAME.fullmatch(body):
            return token
        new_body = self.remapper.remap_dotted(body)
        if new_body == body:
            return token
        return token._replace(src=f"{prefix}{quote}{new_body}{quote}")

    def _rewrite_tokens(self, tokens) -> list:
        out = []
        statement_start = True
        i = 0
        while i < len(tokens):
            token = tokens[i]
            if statement_start and token.name == "NAME" and token.src in ("from", "import"):
                out.append(token)
                if token.src == "from":
                    i = self._rewrite_from(tokens, i + 1, out)
                else:
                    i = self._rewrite_import(tokens, i + 1, out)
                statement_start = False
                continue

            if token.name == "STRING":
                token = self._rewrite_string(token)
            out.append(token)

            if token.name in STATEMENT_BOUNDARIES or self._is_op(token, ";") or self._is_op(token, ":"):
                statement_start = True
            elif token.name not in self.non_coding:
                statement_start = False
            i += 1
        return out


class ArchiveRelocator:
    """
    Writes a relocated copy of a zip archive.
    """

    def __init__(self, tokenize_rt, mapping: Dict[str, str]):
        self.remapper = ModuleRemapper(mapping)
        self.source_rewriter = SourceRewriter(tokenize_rt, self.remapper)

    def relocate_member_name(self, name: str) -> str:
        is_dir = name.endswith("/")
        segments = name.rstrip("/").split("/")
        if is_dir:
            return "/".join(self.remapper.remap(segments)) + "/"

        directories, file_name = segments[:-1], segments[-1]
        if file_name.endswith(MODULE_SUFFIXES):
            stem, dot, suffix = file_name.partition(".")
            relocated = self.remapper.remap(directories + [stem])
            return "/".join(relocated[:-1] + [relocated[-1] + dot + suffix])
        return "/".join(self.remapper.remap(directories) + [file_name])

    def relocate_source(self, data: bytes) -> bytes:
        """
        Rewrite a source file, or return it unchanged if it cannot be tokenized.
        """
        try:
            src = data.decode("utf-8")
            return self.source_rewriter.rewrite(src).encode("utf-8")
        except (UnicodeDecodeError, SyntaxError, tokenize.TokenError):
            return data

    def run(self, input_path: pathlib.Path, output_path: pathlib.Path) -> None:
        """
        Write the relocated copy of ``input_path`` to ``output_path``.

        The archive is assembled in a sibling ``.part`` file that is renamed onto
        ``output_path`` once complete; nothing is left behind on failure.
        """
        partial_path = output_path.with_name(output_path.name + PARTIAL_SUFFIX)
        try:
            with zipfile.ZipFile(input_path) as source, \
                    zipfile.ZipFile(partial_path, "w", compression=zipfile.ZIP_DEFLATED) as target:
                written = set()
                for info in source.infolist():
                    name = self.relocate_member_name(info.filename)
                    if name in written:
                        continue

                    # zipimport only sees namespace packages through explicit directory entries
                    parts = name.rstrip("/").split("/")
                    for depth in range(1, len(parts)):
                        directory = "/".join(parts[:depth]) + "/"
                        if directory not in written:
                            target.writestr(zipfile.ZipInfo(directory, date_time=info.date_time), b"")
                            written.add(directory)
                    if name in written:
                        continue

                    member = zipfile.ZipInfo(name, date_time=info.date_time)
                    member.external_attr = info.external_attr
                    if info.is_dir():
                        target.writestr(member, b"")
                    else:
                        data = source.read(info)
                        if name.endswith(SOURCE_SUFFIXES):
                            data = self.relocate_source(data)
                        member.compress_type = zipfile.ZIP_DEFLATED
                        target.writestr(member, data)
                    written.add(name)
            os.replace(partial_path, output_path)
        except Exception:
            if partial_path.exists():
                partial_path.unlink()
            raise
