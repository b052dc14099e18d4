"""Initial directory tree every session starts from."""

from .filesystem import DirNode, FileNode

README = """Welcome to the Kali Linux command simulator!

- Use `ls` to see files and directories.
- Use `cd` to navigate.
- Try `cat README.md` to see this file's content.
- Type `help` for a full list of commands."""

CHROOT_SCRIPT = """#!/bin/python3

# Usage:
# cd in to the rootfs directory
# ./chroot.py chroot
# You will be prompted for your password to mount container paths
# At the end you should be inside the chroot

from enum import Enum
import sys
import subprocess
import logging
import os

logger = logging.getLogger()
logger.setLevel(logging.INFO)

class Command(Enum):
    UNBREAK = 0
    BREAK = 1
    CHROOT = 2

MOUNTS = ["/proc", "/sys", "/dev", "/dev/pts"]

def mount_all(rootfs):
    for path in MOUNTS:
        target = os.path.join(rootfs, path.lstrip("/"))
        subprocess.run(["sudo", "mount", "--rbind", path, target], check=True)

def unmount_all(rootfs):
    for path in reversed(MOUNTS):
        target = os.path.join(rootfs, path.lstrip("/"))
        subprocess.run(["sudo", "umount", "-l", target])

def main():
    if len(sys.argv) < 2:
        print("usage: chroot.py [break|unbreak|chroot]")
        return 1

    command = Command[sys.argv[1].upper()]
    rootfs = os.getcwd()

    if command == Command.BREAK:
        mount_all(rootfs)
    elif command == Command.UNBREAK:
        unmount_all(rootfs)
    else:
        mount_all(rootfs)
        logging.info("Entering chroot")
        subprocess.run(["sudo", "chroot", rootfs, "/bin/bash", "-i"])
        logging.info("Returning from chroot")
        unmount_all(rootfs)

    return 0

if __name__ == "__main__":
    sys.exit(main())
"""

KEYBOARD_LAYOUT = """<?xml version="1.0" encoding="UTF-8"?>
<keyboard_layout name="Cyberpunk_QWERTY_US" theme="Cyberpunk" version="1.0">
  <description>A standard US QWERTY keyboard layout with a futuristic, cyberpunk aesthetic. Key codes are based on web standards.</description>

  <!-- Home Row -->
  <row id="2">
    <key code="CapsLock" char="Caps" special="true" style="function" width="1.75" />
    <key code="KeyA" char="a" shift_char="A" />
    <key code="KeyS" char="s" shift_char="S" />
    <key code="KeyD" char="d" shift_char="D" />
    <key code="KeyF" char="f" shift_char="F" style="accent" />
    <key code="KeyJ" char="j" shift_char="J" style="accent" />
    <key code="Enter" char="Enter" special="true" style="function" width="2.25" />
  </row>

  <!-- Space Row -->
  <row id="4">
    <key code="ControlLeft" char="Ctrl" special="true" style="function" width="1.25" />
    <key code="AltLeft" char="Alt" special="true" style="function" width="1.25" />
    <key code="Space" char=" " special="false" width="6.25" style="spacebar" />
    <key code="AltRight" char="Alt" special="true" style="function" width="1.25" />
    <key code="ControlRight" char="Ctrl" special="true" style="function" width="1.25" />
  </row>
</keyboard_layout>"""


def build_seed_tree() -> DirNode:
    """Build a fresh root directory with the kali home directory populated."""
    home = DirNode({
        'README.md': FileNode(README),
        'chroot.py': FileNode(CHROOT_SCRIPT),
        'Cyberpunk_QWERTY_(US).xml': FileNode(KEYBOARD_LAYOUT),
        'documents': DirNode({
            'project_plan.txt': FileNode(
                'Phase 1: Initial setup.\nPhase 2: Core feature implementation.\nPhase 3: Launch.'
            ),
        }),
        'projects': DirNode({
            'website': DirNode({
                'index.html': FileNode('<h1>Hello, World!</h1>'),
                'style.css': FileNode('body { color: green; }'),
            }),
        }),
        '.secret_file': FileNode('This is a hidden file. You found it!'),
    })

    return DirNode({'home': DirNode({'kali': home})})
