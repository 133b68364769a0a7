"""Language profiles: file naming, staging and build/run commands per language."""

from __future__ import annotations

import re
import uuid
from collections.abc import Mapping
from pathlib import Path

from codejudge.config import DEFAULT_TOOLCHAIN
from codejudge.errors import UnsupportedLanguageError


class LanguageProfile:
    """Base profile. Subclasses set the class attributes and override hooks.

    ``commands()`` returns argv lists run in the staged directory: every
    entry but the last is a build step, the last one runs the program.
    """

    name: str = ""
    aliases: tuple[str, ...] = ()
    extension: str = ""

    def source_name(self, code: str) -> str:
        return f"code_{uuid.uuid4().hex}{self.extension}"

    def stage(self, code: str, directory: Path) -> Path:
        """Write *code* into *directory* and return the source path."""
        source = directory / self.source_name(code)
        source.write_text(code, encoding="utf-8")
        return source

    def commands(self, source: Path, toolchain: Mapping[str, str] | None = None) -> list[list[str]]:
        raise NotImplementedError

    def normalize_output(self, stdout: str) -> str:
        return stdout

    @staticmethod
    def _tool(toolchain: Mapping[str, str] | None, key: str) -> str:
        if toolchain and toolchain.get(key):
            return toolchain[key]
        return DEFAULT_TOOLCHAIN[key]

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class LastLineOutput:
    """Keep only the last non-empty line of stdout.

    For runners that print banners or diagnostics ahead of the program's
    own output. Legitimate multi-line output is cut down to its last line.
    """

    def normalize_output(self, stdout: str) -> str:
        lines = [line for line in re.split(r"[\r\n]+", stdout) if line]
        return lines[-1] if lines else ""


class PythonProfile(LanguageProfile):
    name = "python"
    aliases = ("py", "python3")
    extension = ".py"

    def commands(self, source, toolchain=None):
        return [[self._tool(toolchain, "python"), source.name]]


class JavaScriptProfile(LanguageProfile):
    name = "javascript"
    aliases = ("js", "node")
    extension = ".js"

    def commands(self, source, toolchain=None):
        return [[self._tool(toolchain, "node"), source.name]]


# Comments and string/char literals in C-family source, longest forms first.
_C_FAMILY_NOISE = re.compile(
    r"//[^\n]*"
    r"|/\*[\s\S]*?\*/"
    r'|"""[\s\S]*?"""'
    r'|@"(?:[^"]|"")*"'
    r'|"(?:\\.|[^"\\\n])*"'
    r"|'(?:\\.|[^'\\\n])*'"
)


def strip_comments_and_strings(code: str) -> str:
    """Blank out comments and literals so keyword and brace scans see only code."""
    return _C_FAMILY_NOISE.sub(lambda m: " " if m.group(0)[0] == "/" else '""', code)


_JAVA_PUBLIC_TYPE = re.compile(
    r"\bpublic\s+(?:(?:final|abstract|sealed|non-sealed|strictfp)\s+)*"
    r"(?:class|interface|enum|record)\s+([A-Za-z_$][\w$]*)"
)


class JavaProfile(LanguageProfile):
    """javac needs the file named after its public top-level type."""

    name = "java"
    extension = ".java"
    default_class = "Main"

    def entry_class(self, code: str) -> str:
        cleaned = strip_comments_and_strings(code)
        for match in _JAVA_PUBLIC_TYPE.finditer(cleaned):
            prefix = cleaned[: match.start()]
            if prefix.count("{") == prefix.count("}"):
                return match.group(1)
        return self.default_class

    def source_name(self, code: str) -> str:
        return f"{self.entry_class(code)}{self.extension}"

    def commands(self, source, toolchain=None):
        return [
            [self._tool(toolchain, "javac"), source.name],
            [self._tool(toolchain, "java"), "-cp", str(source.parent), source.stem],
        ]


class CProfile(LanguageProfile):
    name = "c"
    extension = ".c"
    compiler = "gcc"

    def commands(self, source, toolchain=None):
        program = source.parent / "program"
        return [
            [self._tool(toolchain, self.compiler), source.name, "-o", str(program)],
            [str(program)],
        ]


class CppProfile(CProfile):
    name = "cpp"
    aliases = ("c++",)
    extension = ".cpp"
    compiler = "g++"


CSHARP_PROJECT_TEMPLATE = """\
<Project Sdk="Microsoft.NET.Sdk">
  <PropertyGroup>
    <OutputType>Exe</OutputType>
    <TargetFramework>net8.0</TargetFramework>
    <ImplicitUsings>enable</ImplicitUsings>
    <Nullable>enable</Nullable>
    <SuppressNETCoreSdkPreviewMessage>true</SuppressNETCoreSdkPreviewMessage>
    <NoWarn>CS8602</NoWarn>
  </PropertyGroup>
</Project>
"""

_CSHARP_TYPE_DECL = re.compile(r"\b(?:class|struct|record|interface|namespace)\s+[A-Za-z_]")

# Console.ReadLine() returns null at end of input
_CSHARP_UNSAFE_READS = {
    "Console.ReadLine().Split()": "(Console.ReadLine()?.Split() ?? Array.Empty<string>())",
}


class CSharpProfile(LastLineOutput, LanguageProfile):
    """Project-based: a fixed .csproj plus Program.cs, built then run.

    ``dotnet build`` resolves the project by directory, so a staging
    directory must never hold two submissions.
    """

    name = "csharp"
    aliases = ("cs", "c#")
    extension = ".cs"
    project_name = "Submission"

    def source_name(self, code: str) -> str:
        return "Program.cs"

    def prepare_source(self, code: str) -> str:
        for unsafe, safe in _CSHARP_UNSAFE_READS.items():
            code = code.replace(unsafe, safe)
        if not _CSHARP_TYPE_DECL.search(strip_comments_and_strings(code)):
            code = wrap_csharp_statements(code)
        return code

    def stage(self, code, directory):
        (directory / f"{self.project_name}.csproj").write_text(CSHARP_PROJECT_TEMPLATE, encoding="utf-8")
        return super().stage(self.prepare_source(code), directory)

    def commands(self, source, toolchain=None):
        dotnet = self._tool(toolchain, "dotnet")
        return [
            [dotnet, "build", "--nologo", "--verbosity", "quiet"],
            [dotnet, "run", "--no-build", "--nologo"],
        ]


def wrap_csharp_statements(body: str) -> str:
    """Wrap a bare statement sequence in a Program.Main entry point.

    Leading ``using`` directives stay at file scope.
    """
    lines = body.splitlines()
    usings: list[str] = []
    while lines and (not lines[0].strip() or re.match(r"\s*using\s+[\w.]+\s*;", lines[0])):
        line = lines.pop(0)
        if line.strip():
            usings.append(line.strip())
    indented = "\n".join(f"        {line}" if line.strip() else "" for line in lines)
    header = "".join(f"{u}\n" for u in usings)
    return (
        f"{header}"
        "public class Program\n"
        "{\n"
        "    public static void Main(string[] args)\n"
        "    {\n"
        f"{indented}\n"
        "    }\n"
        "}\n"
    )


LANGUAGE_PROFILES: tuple[LanguageProfile, ...] = (
    PythonProfile(),
    JavaProfile(),
    CProfile(),
    CppProfile(),
    CSharpProfile(),
    JavaScriptProfile(),
)

PROFILES: dict[str, LanguageProfile] = {}
for _profile in LANGUAGE_PROFILES:
    for _key in (_profile.name, *_profile.aliases):
        PROFILES[_key] = _profile
del _profile, _key


def supported_languages() -> list[str]:
    return [p.name for p in LANGUAGE_PROFILES]


def resolve(language: str | None) -> LanguageProfile:
    """Look up the profile for *language*, ignoring case and whitespace."""
    profile = PROFILES.get((language or "").strip().lower())
    if profile is None:
        raise UnsupportedLanguageError(language or "")
    return profile
