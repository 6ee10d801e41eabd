"""
L0 Data — File templates and rc-file snippets.

Templates use ``str.format`` placeholders and are rendered by the
domain layer.  Literal braces are doubled.
"""

from __future__ import annotations

SYSTEMD_UNIT_TEMPLATE = """\
[Unit]
Description={description}
Documentation={documentation}
After=network.target nss-lookup.target network-online.target

[Service]
CapabilityBoundingSet={capabilities}
AmbientCapabilities={capabilities}
ExecStart={exec_start}
ExecReload=/bin/kill -HUP $MAINPID
Restart=on-failure
RestartSec={restart_sec}
LimitNPROC={limit_nproc}
LimitNOFILE={limit_nofile}

[Install]
WantedBy=multi-user.target
"""

# ── Zsh ──────────────────────────────────────────────────────────

DEFAULT_ZSHRC = """\
export ZSH="$HOME/.oh-my-zsh"

ZSH_THEME=""

plugins=()

source $ZSH/oh-my-zsh.sh

"""

OH_MY_ZSH_SOURCE_LINE = "source $ZSH/oh-my-zsh.sh"

# Inserted once, before the oh-my-zsh source line.  The first line is
# the marker used to detect a previous insertion.
ZSH_PERFORMANCE_BLOCK: list[str] = [
    "ZSH_DISABLE_COMPFIX=true",
    "DISABLE_AUTO_UPDATE=true",
    "DISABLE_UPDATE_PROMPT=true",
    "",
    "autoload -Uz compinit",
    "if [[ -n ${ZDOTDIR}/.zcompdump(#qN.mh+24) ]]; then",
    "    compinit",
    "else",
    "    compinit -C",
    "fi",
    "",
    "HISTSIZE=10000",
    "SAVEHIST=10000",
    "HISTFILE=~/.zsh_history",
    "setopt HIST_IGNORE_ALL_DUPS",
    "setopt HIST_FIND_NO_DUPS",
    "setopt HIST_REDUCE_BLANKS",
    "unsetopt correct_all",
    "",
]

ZSH_STARSHIP_INIT = 'eval "$(starship init zsh)"'
ZSH_ZOXIDE_INIT = 'eval "$(zoxide init zsh)"'
ZSH_CD_ALIAS = 'alias cd="z"'
ZSH_PLUGINS = "(zsh-autosuggestions)"

ZSH_NAV_ALIASES: list[str] = [
    'alias ..="cd .."',
    'alias ...="cd ../.."',
    'alias ....="cd ../../.."',
]

# ── Fish ─────────────────────────────────────────────────────────

FISH_INTERACTIVE_BLOCK: list[str] = ["if status is-interactive", "end"]
FISH_STARSHIP_INIT = "starship init fish | source"
FISH_NO_GREETING = "set fish_greeting"
