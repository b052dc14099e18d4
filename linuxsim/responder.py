#!/usr/bin/env python3
"""
Responders for command lines the interpreter does not handle itself.

A responder turns (command_line, cwd) into display text. The offline
responder answers a few common commands locally; the Gemini responder asks
a text-generation service to play the part of a Kali Linux terminal.
"""

import asyncio
import logging
from datetime import datetime
from typing import Dict, Optional

import requests

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = 'https://generativelanguage.googleapis.com/v1beta'
DEFAULT_MODEL = 'gemini-2.5-flash'

SYSTEM_INSTRUCTION = """You are a Kali Linux terminal simulator. The user is \
'kali' on host 'kali'. Respond only with the raw text output the command \
would print in a real terminal, with no explanations, no markdown and no code \
fences. If the command would print nothing, respond with an empty string. If \
the command does not exist, respond exactly as bash would."""


class ResponderError(RuntimeError):
    """Raised when a responder cannot produce output for a command."""


class Responder:
    """Base class for responders."""

    async def respond(self, command_line: str, cwd: str) -> str:
        raise NotImplementedError


NEOFETCH_LOGO = [
    "      ..,;:ccc,.      ",
    "    ......''';lxO.    ",
    ".....''''..........,:ld;",
    "         .';;;:::;,,.x,",
    "    ..'''.          0Xx",
    "  ....            ,ONkc;",
    " .               OMo    ",
    "                 dMc    ",
    "                 0M.    ",
    "                 ;Wd    ",
    "                  ;XO,  ",
]


def _neofetch(user: str, hostname: str) -> str:
    info = [
        f"{user}@{hostname}",
        "-" * len(f"{user}@{hostname}"),
        "OS: Kali GNU/Linux Rolling x86_64",
        "Host: linuxsim virtual machine",
        "Kernel: 6.6.9-amd64",
        "Shell: zsh 5.9",
        "Terminal: linuxsim",
        "CPU: Virtual CPU (4) @ 2.400GHz",
        "Memory: 1024MiB / 4096MiB",
    ]
    width = max(len(line) for line in NEOFETCH_LOGO) + 2
    lines = []
    for i, art in enumerate(NEOFETCH_LOGO):
        text = info[i] if i < len(info) else ''
        lines.append(f"{art:<{width}}{text}".rstrip())
    return '\n'.join(lines)


class OfflineResponder(Responder):
    """Answers a handful of commands locally, without any network access."""

    def __init__(self, user: str = 'kali', hostname: str = 'kali'):
        self.user = user
        self.hostname = hostname

    async def respond(self, command_line: str, cwd: str) -> str:
        parts = command_line.split()
        verb = parts[0]
        args = parts[1:]

        if verb == 'help':
            return self._help()
        elif verb == 'neofetch':
            return _neofetch(self.user, self.hostname)
        elif verb == 'echo':
            return ' '.join(args)
        elif verb == 'date':
            return datetime.now().astimezone().strftime('%a %b %d %H:%M:%S %Z %Y')
        elif verb == 'uname':
            if '-a' in args:
                return f"Linux {self.hostname} 6.6.9-amd64 #1 SMP PREEMPT_DYNAMIC Kali 6.6.9-1kali1 x86_64 GNU/Linux"
            return 'Linux'
        elif verb == 'hostname':
            return self.hostname

        return f"{verb}: command not found"

    def _help(self) -> str:
        from .line_editor import COMMAND_VOCABULARY

        lines = [
            "Linux Command Simulator - Available Commands",
            "=" * 44,
            "",
        ]
        for command in COMMAND_VOCABULARY:
            lines.append(f"  {command}")
        lines.append("")
        lines.append("Other commands are answered by the simulator backend when configured.")
        return '\n'.join(lines)


class GeminiResponder(Responder):
    """Ask the Gemini generateContent endpoint for a command's output."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str = DEFAULT_MODEL,
        base_url: str = GEMINI_BASE_URL,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip('/')
        self._timeout = timeout
        self._session = session or requests.Session()

    def _payload(self, command_line: str, cwd: str) -> Dict[str, object]:
        return {
            'systemInstruction': {'parts': [{'text': SYSTEM_INSTRUCTION}]},
            'contents': [{
                'role': 'user',
                'parts': [{'text': f"Current directory: {cwd}\nCommand: {command_line}"}],
            }],
        }

    def _generate(self, command_line: str, cwd: str) -> str:
        url = f"{self._base_url}/models/{self._model}:generateContent"
        try:
            response = self._session.post(
                url,
                params={'key': self._api_key},
                json=self._payload(command_line, cwd),
                timeout=self._timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise ResponderError(f"Failed to reach the simulator backend: {exc}") from exc
        except ValueError as exc:
            raise ResponderError(f"Invalid JSON response: {exc}") from exc

        try:
            parts = payload['candidates'][0]['content']['parts']
        except (KeyError, IndexError, TypeError) as exc:
            raise ResponderError("Unexpected response payload") from exc

        return ''.join(part.get('text', '') for part in parts).strip('\n')

    async def respond(self, command_line: str, cwd: str) -> str:
        logger.debug("asking %s for %r in %s", self._model, command_line, cwd)
        return await asyncio.to_thread(self._generate, command_line, cwd)


__all__ = [
    "GeminiResponder",
    "OfflineResponder",
    "Responder",
    "ResponderError",
]
