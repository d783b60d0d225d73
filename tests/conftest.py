"""
Pytest config to ensure local module imports work without installation.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path


def _add_repo_root_to_path() -> None:
    """
    Insert the repo root into sys.path for local imports.
    """
    repo_root = Path(__file__).resolve().parent.parent
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_add_repo_root_to_path()


class FakeFilesystem:
    """
    Test-only in-memory stand-in for steamclipconverter.LocalFilesystem.
    """

    def __init__(self, dirs=(), files=None, unreadable=()):
        self.files = {Path(p): text for p, text in (files or {}).items()}
        self.dirs = set()
        for d in dirs:
            self._add_dir(Path(d))
        for f in self.files:
            self._add_dir(f.parent)
        self.unreadable = {Path(p) for p in unreadable}

    def _add_dir(self, path: Path) -> None:
        self.dirs.add(path)
        self.dirs.update(path.parents)

    def is_dir(self, path) -> bool:
        return Path(path) in self.dirs

    def is_file(self, path) -> bool:
        return Path(path) in self.files

    def read_text(self, path) -> str:
        path = Path(path)
        if path in self.unreadable:
            raise PermissionError(13, "Permission denied", str(path))
        if path not in self.files:
            raise FileNotFoundError(2, "No such file", str(path))
        return self.files[path]

    def list_dir(self, path):
        path = Path(path)
        if path in self.unreadable:
            raise PermissionError(13, "Permission denied", str(path))
        if path not in self.dirs:
            raise FileNotFoundError(2, "No such directory", str(path))
        entries = {}
        for d in self.dirs:
            if d != path and d.parent == path:
                entries[d.name] = True
        for f in self.files:
            if f.parent == path:
                entries.setdefault(f.name, False)
        return sorted(entries.items())


class FakeFfmpeg:
    """
    Test-only replacement for subprocess.run that pretends to be ffmpeg.

    Successful runs create the output file (the last argument) so the
    timestamp step has something to touch.
    """

    def __init__(self, returncode: int = 0, stderr: bytes = b""):
        self.returncode = returncode
        self.stderr = stderr
        self.calls = []

    def __call__(self, cmd, cwd=None, check=False, capture_output=False, creationflags=0):
        self.calls.append({"cmd": list(cmd), "cwd": cwd})
        if self.returncode != 0:
            if check:
                raise subprocess.CalledProcessError(self.returncode, cmd, output=b"", stderr=self.stderr)
            return subprocess.CompletedProcess(cmd, self.returncode, b"", self.stderr)
        Path(cmd[-1]).write_bytes(b"\x00\x00\x00\x18ftypmp42")
        return subprocess.CompletedProcess(cmd, 0, b"", b"")


def make_clip(parent: Path, name: str, with_manifest: bool = True) -> Path:
    """Create a clip folder with a session.mpd and one segment file."""
    clip = parent / name
    clip.mkdir(parents=True)
    if with_manifest:
        (clip / "session.mpd").write_text("<MPD/>", encoding="utf-8")
    (clip / "chunk-stream0-00001.m4s").write_bytes(b"")
    return clip


def write_manifest(steamapps: Path, appid: int, name: str) -> Path:
    """Write a minimal appmanifest_<appid>.acf."""
    steamapps.mkdir(parents=True, exist_ok=True)
    path = steamapps / f"appmanifest_{appid}.acf"
    path.write_text(
        '"AppState"\n{\n'
        f'\t"appid"\t\t"{appid}"\n'
        '\t"Universe"\t\t"1"\n'
        f'\t"name"\t\t"{name}"\n'
        '\t"StateFlags"\t\t"4"\n'
        '}\n',
        encoding="utf-8",
    )
    return path
