"""
Pattern rule table for CodePort.

Every regex and keyword vocabulary used by the classifier, the context
summarizer, the sanitizer, the manifest, the synthesis pass and the static
checks lives here so behavior can be reviewed and tested in one place. Bump
RULESET_VERSION when any table changes meaning.
"""

import re
from typing import NamedTuple

RULESET_VERSION = "2024.4"


class Rule(NamedTuple):
    """A compiled pattern and what to do with its matches."""

    name: str
    pattern: re.Pattern[str]
    replacement: str = ""


def _rule(name: str, pattern: str, replacement: str = "", flags: int = 0) -> Rule:
    return Rule(name, re.compile(pattern, flags), replacement)


# ============================================================================
# File Classifier
# ============================================================================

# +2 each when present in the lower-cased path
CLASSIFIER_PATH_KEYWORDS: tuple[str, ...] = (
    "activity",
    "viewmodel",
    "service",
    "controller",
    "navigation",
    "deeplink",
    "repository",
)

# +1 each when present in the lower-cased content
CLASSIFIER_CONTENT_KEYWORDS: tuple[str, ...] = (
    "class ",
    "activity",
    "viewmodel",
    "service",
    "oncreate",
    "onstartcommand",
    "stateflow",
    "livedata",
    "intent",
    "navcontroller",
    "navigation",
    "coroutinescope",
    "suspend fun",
)

PATH_KEYWORD_WEIGHT = 2
CONTENT_KEYWORD_WEIGHT = 1
DEFAULT_SEQUENTIAL_THRESHOLD = 2


# ============================================================================
# Project Context Summarizer
# ============================================================================

TYPE_DECLARATION = re.compile(r"class\s+([A-Za-z0-9_]+)")
FUNCTION_DECLARATION = re.compile(r"(?:override\s+)?fun\s+([A-Za-z0-9_]+)\s*\(")
STATE_DECLARATION = re.compile(r"\b(?:val|var)\s+([A-Za-z0-9_]+)\s*[:=]")
PERSISTED_KEY = re.compile(r'getsharedpreferences\("([^"]+)"', re.IGNORECASE)
PAYLOAD_KEY = re.compile(r'putextra\("([^"]+)"', re.IGNORECASE)

NAVIGATION_SIGNALS: tuple[str, ...] = (
    "startactivity",
    "intent(",
    "navcontroller",
    "navigate(",
    "findnavcontroller",
)
STATE_USAGE_SIGNALS: tuple[str, ...] = (
    "viewmodel",
    "stateflow",
    "livedata",
    "mutablelivedata",
    "mutablestateflow",
)
SERVICE_SIGNALS: tuple[str, ...] = (
    "bindservice",
    "startservice",
    "stopservice",
    "onstartcommand",
)
DEEP_LINK_SIGNALS: tuple[str, ...] = (
    "intent?.data",
    "intent.data",
    "getqueryparameter",
    "deeplink",
)

# Ordered: first matching role wins
FILE_ROLE_SIGNALS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("viewmodel", ("viewmodel", "mutablelivedata", "stateflow")),
    ("ui", ("@composable", "setcontent", "activity", "fragment", "compose")),
    ("service", ("retrofit", "okhttp", "repository", "service", "api")),
    ("navigation", ("navcontroller", "navhost", "navigation", "deeplink")),
    ("data", ("data class", "entity", "@serializedname", "parcelize")),
    ("utility", ("util", "helper", "extension", "object ")),
)

# Source library -> target framework hint (case-sensitive substring match)
LIBRARY_HINTS: dict[str, str] = {
    "Retrofit": "URLSession + Swift Concurrency (async/await)",
    "Room": "SwiftData (@Model)",
    "Jetpack Compose": "SwiftUI",
    "Hilt": "Swift Dependency Injection (Protocols/Environment)",
    "Dagger": "Swift Dependency Injection (Protocols/Environment)",
    "Glide": "AsyncImage (Native SwiftUI)",
    "Coil": "AsyncImage (Native SwiftUI)",
    "Gson": "Codable Protocols",
    "Moshi": "Codable Protocols",
    "Firebase": "Firebase iOS SDK",
    "LiveData": "@Published + Combine",
    "StateFlow": "@Observable (Swift Observation Framework)",
    "ViewModel": "@Observable Object / @StateObject",
}


# ============================================================================
# Sanitizer
# ============================================================================

FENCE = re.compile(r"```[A-Za-z0-9_+\-]*")

# Earliest match of any of these marks the start of real code
CODE_ANCHORS: tuple[Rule, ...] = (
    _rule("import", r"^[ \t]*import[ \t]+\w", flags=re.MULTILINE),
    _rule(
        "attribute",
        r"^[ \t]*@(?:Model|MainActor|main|Observable|objc)\b",
        flags=re.MULTILINE,
    ),
    _rule(
        "declaration",
        r"^[ \t]*(?:(?:public|private|internal|fileprivate|open|final)[ \t]+)*"
        r"(?:class|struct|protocol|enum|actor|extension)[ \t]+\w",
        flags=re.MULTILINE,
    ),
)

# Tails of this length or shorter after the last brace are kept as syntax
TRIVIAL_TAIL_LENGTH = 2
# A tail line that starts with one of these is code, not chatter
CODE_TAIL_LINES: tuple[Rule, ...] = (
    _rule(
        "func",
        r"^[ \t]*(?:(?:static|private|public|mutating)[ \t]+)*func[ \t]+\w+[ \t]*[(<]",
        flags=re.MULTILINE,
    ),
    _rule(
        "binding",
        r"^[ \t]*(?:(?:static|private|public)[ \t]+)*(?:let|var)[ \t]+\w+[ \t]*[:=]",
        flags=re.MULTILINE,
    ),
    _rule("typealias", r"^[ \t]*typealias[ \t]+\w+[ \t]*=", flags=re.MULTILINE),
    _rule(
        "attribute",
        r"^[ \t]*@[A-Z]\w*(?:\(|[ \t]*$|[ \t]+(?:struct|class|final|var|let|func)\b)",
        flags=re.MULTILINE,
    ),
    _rule("directive", r"^[ \t]*#(?:if|elseif|else|endif|Preview)\b", flags=re.MULTILINE),
)

RESIDUAL_RULES: tuple[Rule, ...] = (
    _rule("package", r"^[ \t]*package[ \t]+[\w.]+[ \t]*;?[ \t]*\n?", flags=re.MULTILINE),
    _rule("data_class", r"\bdata class\b", "struct"),
)

# (marker used in the code, import that must accompany it)
REQUIRED_IMPORTS: tuple[tuple[str, str], ...] = (("@Model", "import SwiftData"),)


# ============================================================================
# Manifest
# ============================================================================

SOURCE_DECLARATION = re.compile(r"(?:class|interface|data class|object)\s+(\w+)")
TARGET_DECLARATION = re.compile(r"(?:class|struct|protocol|enum)\s+(\w+)")


# ============================================================================
# Global Synthesis Pass
# ============================================================================

PRIMITIVE_NORMALIZATIONS: tuple[Rule, ...] = (
    _rule("boolean", r"\bBoolean\b", "Bool"),
    _rule("long", r"\bLong\b", "Int64"),
    _rule("float", r"\bFloat\b", "CGFloat"),
    _rule("unit_return", r":\s*Unit\b", " -> Void"),
    _rule("to_string", r"\.toString\(\)", ".description"),
)

FRAMEWORK_FIXUPS: tuple[Rule, ...] = (
    _rule("color_hex", r"Color\(0x([0-9A-Fa-f]+)\)", r'Color(hex: "\1")'),
    _rule("text_color", r"Text\(([^()\n]*),\s*color:\s*([^()\n]+)\)", r"Text(\1).foregroundColor(\2)"),
    _rule("lazy_row", r"\bLazyRow\b", "LazyHStack"),
    _rule("lazy_column", r"\bLazyColumn\b", "LazyVStack"),
)


# ============================================================================
# Compiler Oracle
# ============================================================================

MODULE_ERROR_MARKERS: tuple[str, ...] = ("no such module",)

# (diagnostic fragment, repair suggestion)
DIAGNOSTIC_SUGGESTIONS: tuple[tuple[str, str], ...] = (
    (
        "cannot find 'Modifier' in scope",
        "You left Android 'Modifier' syntax in the output. Replace it with .frame(), .padding(), etc.",
    ),
    (
        "expected '{' in class",
        "Malformed class/struct structure. Check your braces.",
    ),
    (
        "consecutive statements",
        "Kotlin-style property syntax detected. Use 'var name: Type = value'.",
    ),
)


# ============================================================================
# Static Checks
# ============================================================================

ROUTE_ENUM = re.compile(r"\benum\s+Route\b[^{\n]*\{")
ROUTE_CASE_LINE = re.compile(r"^\s*(?:indirect\s+)?case\s+(.+)$")
ASSOCIATED_VALUES = re.compile(r"\([^()]*\)")
# Pushes onto a NavigationPath (or a link carrying a route value)
NAVIGATION_CALLS: tuple[Rule, ...] = (
    _rule("path_append", r"\bpath\.append\(\s*Route\.(\w+)"),
    _rule("navigation_link", r"\bNavigationLink\(\s*value:\s*Route\.(\w+)"),
)
# `case .detail(let id): DetailView(id: id)` inside .navigationDestination
DESTINATION_CASE = re.compile(r"\bcase\s+(?:Route)?\.(\w+)[^:\n]*:\s*(\w+)\s*\(")
VIEW_DECLARATION = re.compile(r"\bstruct\s+(\w+)\s*:\s*(?:[\w.]+\s*,\s*)*View\b")

MODEL_DECLARATION = re.compile(
    r"@Model\s+((?:(?:public|internal|fileprivate|private|open|final)\s+)*)"
    r"(class|struct|enum|actor)\s+(\w+)[^{]*\{"
)
STORED_PROPERTY = re.compile(
    r"^\s*((?:@\w+(?:\([^()]*\))?\s+)*)"
    r"((?:(?:public|internal|fileprivate|private|static|lazy)\s+)*)"
    r"(var|let)\s+(\w+)\s*:\s*([^={\n]+?)\s*(=|\{|$)"
)
INITIALIZER = re.compile(r"^\s*(?:(?:public|internal|convenience|required)\s+)*init\s*[(<]")
RELATIONSHIP_INVERSE = re.compile(r"@Relationship\([^)]*inverse:\s*\\(\w+)\.(\w+)")
# Types SwiftData cannot persist
ILLEGAL_MODEL_TYPES = re.compile(r"\b(?:UIView|UIViewController|UIImage|NSView|AnyView|Color|Image)\b")
