"""AI coding agents tracked via the GitHub commit search API.

Agents are detected one of two ways:

- ``author:<bot>[bot]``: the agent runs as a GitHub App and is the commit
  author, so matches are precise.
- bare text (an email or domain): the agent commits as the human user and
  adds a Co-Authored-By trailer, which commit search matches in the message.
"""

from typing import NamedTuple


class Agent(NamedTuple):
    name: str  # display name
    key: str  # identifier used in the record files
    query: str  # search query fragment


AGENTS = [
    # Co-authored-by: Claude <noreply@anthropic.com>
    Agent("Claude Code", "claude", "noreply@anthropic.com"),
    Agent("GitHub Copilot", "copilot", "author:copilot-swe-agent[bot]"),
    Agent("Devin AI", "devin", "author:devin-ai-integration[bot]"),
    # Co-authored-by trailer with noreply@aider.chat
    Agent("Aider", "aider", "aider.chat"),
    # Cloud only, Codex CLI commits carry no marker
    Agent("OpenAI Codex", "codex", "author:chatgpt-codex-connector[bot]"),
    Agent("OpenCode", "opencode", "noreply@opencode.ai"),
    # In-IDE agent adds a trailer, the background agent commits as itself
    Agent("Cursor (Editor)", "cursor_editor", "cursoragent@cursor.com"),
    Agent("Cursor (Background)", "cursor_bg", "author-email:agent@cursor.com"),
    Agent("Google Jules", "jules", "author:google-labs-jules[bot]"),
    Agent("Amazon Q", "amazonq", "author:amazon-q-developer[bot]"),
]

# Display name -> record keys, used when reporting. Cursor's two modes share a row.
CHART_AGENTS = {
    "Claude Code": ["claude"],
    "GitHub Copilot": ["copilot"],
    "Cursor": ["cursor_editor", "cursor_bg"],
    "Devin AI": ["devin"],
    "Google Jules": ["jules"],
    "Aider": ["aider"],
    "OpenAI Codex": ["codex"],
    "OpenCode": ["opencode"],
    "Amazon Q": ["amazonq"],
}

AGENT_KEYS = [key for keys in CHART_AGENTS.values() for key in keys]
