"""Constants for GitHub service."""

PUSH_EVENT = "PushEvent"

DEFAULT_LANGUAGE_COLOR = "#8b949e"

# Standard GitHub language colors (subset of most common)
# Used for the language breakdown on the site
GITHUB_LANGUAGE_COLORS: dict[str, str] = {
    "Python": "#3572A5",
    "JavaScript": "#f1e05a",
    "TypeScript": "#3178c6",
    "Java": "#b07219",
    "C++": "#f34b7d",
    "C": "#555555",
    "C#": "#178600",
    "Go": "#00ADD8",
    "Rust": "#dea584",
    "Ruby": "#701516",
    "PHP": "#4F5D95",
    "Swift": "#F05138",
    "Kotlin": "#A97BFF",
    "Scala": "#c22d40",
    "Shell": "#89e051",
    "HTML": "#e34c26",
    "CSS": "#563d7c",
    "SCSS": "#c6538c",
    "Vue": "#41b883",
    "Svelte": "#ff3e00",
    "Dockerfile": "#384d54",
    "Makefile": "#427819",
    "Jupyter Notebook": "#DA5B0B",
}


def language_color(language: str) -> str:
    """Display color for a language, grey when unknown."""
    return GITHUB_LANGUAGE_COLORS.get(language, DEFAULT_LANGUAGE_COLOR)
