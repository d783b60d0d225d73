#!/usr/bin/env python3
"""
Steam Clip Converter

Convert Steam game recording clip folders (fg_<appid>_<date>_<time> with a
session.mpd) to MP4 files named after the game. Supports Windows, macOS, and
Linux Steam library layouts, including extra libraries from libraryfolders.vdf.
"""

import os
import re
import sys
import enum
import shutil
import argparse
import logging
import traceback
import platform
import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

try:
    import imageio_ffmpeg as iio
    import requests
except ImportError as e:
    print(f"Missing required dependency: {e}")
    print("Please install required packages:")
    print("pip install imageio-ffmpeg requests")
    sys.exit(1)


logger = logging.getLogger(__name__)

CLIP_PREFIX = "fg"
CONTAINER_PREFIX = "clip"
NAME_DELIMITER = "_"
CONTAINER_VIDEO_DIR = "video"
SESSION_MANIFEST = "session.mpd"
OUTPUT_EXTENSION = "mp4"
LIBRARY_REGISTRY_LOCATIONS = (
    ("config", "libraryfolders.vdf"),
    ("steamapps", "libraryfolders.vdf"),
)

# Characters not allowed in file names on at least one supported OS
INVALID_FILENAME_CHARS = '<>:"|?*\\/'
WINDOWS_RESERVED_NAMES = {"CON", "PRN", "AUX", "NUL"} | {
    f"{base}{n}" for base in ("COM", "LPT") for n in range(10)
}
MAX_FILENAME_BYTES = 255


# ---------------------------------------------------------------------------
# Key/value extraction for Steam's text formats (VDF / ACF)
# ---------------------------------------------------------------------------

def _key_value_pattern(key: str) -> "re.Pattern[str]":
    return re.compile(r'"%s"\s*"([^"]+)"' % re.escape(key))


def extract_vdf_values(text: str, key: str) -> List[str]:
    """
    Return every value of a quoted "<key>" "<value>" pair, in text order.

    This is a flat scan: section nesting is ignored, so a key found at any
    depth counts.
    """
    return [m.group(1) for m in _key_value_pattern(key).finditer(text)]


def extract_vdf_value(text: str, key: str) -> Optional[str]:
    """Return the first value for key, or None if it does not appear."""
    match = _key_value_pattern(key).search(text)
    return match.group(1) if match else None


# ---------------------------------------------------------------------------
# Filesystem access used by library discovery and cleanup decisions
# ---------------------------------------------------------------------------

class LocalFilesystem:
    """
    Read-only view of the real filesystem.

    Library discovery and the cleanup decision only talk to the disk through
    these methods so that tests can swap in an in-memory stand-in.
    """

    def is_dir(self, path: Path) -> bool:
        return os.path.isdir(path)

    def is_file(self, path: Path) -> bool:
        return os.path.isfile(path)

    def read_text(self, path: Path) -> str:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def list_dir(self, path: Path) -> List[Tuple[str, bool]]:
        """List (name, is_directory) pairs for the entries of path."""
        with os.scandir(path) as it:
            return [(entry.name, entry.is_dir()) for entry in it]


LOCAL_FILESYSTEM = LocalFilesystem()


# ---------------------------------------------------------------------------
# Steam library roots and app names
# ---------------------------------------------------------------------------

def default_steam_root_candidates(system: Optional[str] = None,
                                  environ: Optional[Mapping[str, str]] = None) -> List[Path]:
    """
    Default Steam install directories for the running OS, most likely first.

    These are Steam roots, not steamapps directories.

    Args:
        system: platform.system() value to use instead of the running one
        environ: Environment mapping to use instead of os.environ

    Returns:
        List[Path]: Candidate roots; they are not checked for existence
    """
    system = system or platform.system()
    environ = os.environ if environ is None else environ
    candidates = []

    if system == "Windows":
        program_files_x86 = environ.get("PROGRAMFILES(X86)")
        if program_files_x86:
            candidates.append(Path(f"{program_files_x86}\\Steam"))
        else:
            candidates.append(Path(r"C:\Program Files (x86)\Steam"))
    elif system == "Darwin":  # macOS
        home = environ.get("HOME")
        if home:
            candidates.append(Path(home) / "Library" / "Application Support" / "Steam")
    else:
        # Linux and other Unix-like systems
        home = environ.get("HOME")
        if home:
            candidates.append(Path(home) / ".local" / "share" / "Steam")

    return candidates


def _unescape_vdf_path(value: str) -> str:
    # libraryfolders.vdf writes Windows paths as D:\\SteamLibrary
    return value.replace("\\\\", "\\")


def discover_steamapps_roots(candidates: Optional[Iterable[Path]] = None,
                             probe: Optional[LocalFilesystem] = None) -> List[Path]:
    """
    Find every steamapps directory that may hold appmanifest_<id>.acf files.

    Each Steam root contributes its own steamapps directory plus any library
    listed in <root>/config/libraryfolders.vdf or
    <root>/steamapps/libraryfolders.vdf.

    Args:
        candidates: Steam roots to inspect (default: default_steam_root_candidates())
        probe: Filesystem access (default: the local filesystem)

    Returns:
        List[Path]: Deduplicated, sorted steamapps directories; may be empty
    """
    probe = probe or LOCAL_FILESYSTEM
    if candidates is None:
        candidates = default_steam_root_candidates()

    roots = set()
    for steam_root in candidates:
        steam_root = Path(steam_root)
        steamapps = steam_root / "steamapps"
        if probe.is_dir(steamapps):
            roots.add(steamapps)

        for parts in LIBRARY_REGISTRY_LOCATIONS:
            registry = steam_root.joinpath(*parts)
            if not probe.is_file(registry):
                continue
            try:
                text = probe.read_text(registry)
            except (OSError, UnicodeDecodeError) as e:
                logger.debug(f"Could not read {registry}: {e}")
                continue

            for library_path in extract_vdf_values(text, "path"):
                library_steamapps = Path(_unescape_vdf_path(library_path)) / "steamapps"
                if probe.is_dir(library_steamapps):
                    roots.add(library_steamapps)

    return sorted(roots)


def app_manifest_name(appid: int) -> str:
    return f"appmanifest_{appid}.acf"


def resolve_app_name(appid: int, steamapps_roots: Iterable[Path],
                     probe: Optional[LocalFilesystem] = None) -> Optional[str]:
    """
    Look up the display name of an app from its appmanifest_<appid>.acf.

    Roots are tried in the order given and the first manifest that yields a
    name wins, even if a later root holds a different one.

    Returns:
        Optional[str]: The "name" value, or None if no root has a usable manifest
    """
    probe = probe or LOCAL_FILESYSTEM
    manifest = app_manifest_name(appid)
    for root in steamapps_roots:
        path = Path(root) / manifest
        if not probe.is_file(path):
            continue
        try:
            text = probe.read_text(path)
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Could not read {path}: {e}")
            continue
        name = extract_vdf_value(text, "name")
        if name:
            return name
    return None


# ---------------------------------------------------------------------------
# Clip folder names and discovery
# ---------------------------------------------------------------------------

def _is_ascii_digits(token: str, width: Optional[int] = None) -> bool:
    if not token or (width is not None and len(token) != width):
        return False
    return all('0' <= ch <= '9' for ch in token)


def _split_dated_name(name: str, prefix: str) -> Optional[Tuple[str, str, str]]:
    """
    Split "<prefix>_<digits>_<YYYYMMDD>_<HHMMSS>" into its three digit tokens.

    The whole name must match: exactly four tokens, the literal prefix, then a
    non-empty id and fixed-width date and time.
    """
    tokens = name.split(NAME_DELIMITER)
    if len(tokens) != 4 or tokens[0] != prefix:
        return None
    ident, date, time = tokens[1:]
    if not (_is_ascii_digits(ident) and _is_ascii_digits(date, 8) and _is_ascii_digits(time, 6)):
        return None
    return ident, date, time


def parse_clip_dir_name(name: str) -> Optional[Tuple[int, str, str]]:
    """
    Parse a clip folder name like fg_294100_20250828_124021.

    Returns:
        Optional[Tuple[int, str, str]]: (appid, date, time), or None if the name
        does not match or the appid is zero
    """
    tokens = _split_dated_name(name, CLIP_PREFIX)
    if tokens is None:
        return None
    appid = int(tokens[0])
    if appid == 0:
        return None
    return appid, tokens[1], tokens[2]


def is_clip_dir_name(name: str) -> bool:
    """True for any fg_* name shape, including ones with a zero appid."""
    return _split_dated_name(name, CLIP_PREFIX) is not None


def is_container_dir_name(name: str) -> bool:
    """True for names like clip_294100_20250828_124021."""
    return _split_dated_name(name, CONTAINER_PREFIX) is not None


@dataclass(frozen=True)
class ClipRecord:
    """One fg_<appid>_<date>_<time> folder found on disk."""

    path: Path
    appid: int
    date: str  # YYYYMMDD
    time: str  # HHMMSS

    @property
    def started_at(self) -> Optional[datetime]:
        """Recording start as an aware UTC datetime, or None if the digits are not a real date."""
        try:
            naive = datetime.strptime(self.date + self.time, "%Y%m%d%H%M%S")
        except ValueError:
            return None
        return naive.replace(tzinfo=timezone.utc)

    def output_filename(self, display_name: str) -> str:
        """GameName-YYYYMMDD-HHMMSS.mp4"""
        suffix = f"-{self.date}-{self.time}.{OUTPUT_EXTENSION}"
        name = sanitize_filename(display_name, max_bytes=MAX_FILENAME_BYTES - len(suffix))
        return f"{name or self.appid}{suffix}"


def find_clip_dirs(parent) -> List[ClipRecord]:
    """
    Recursively find fg_* clip folders anywhere under parent.

    A clip folder is never descended into, so nested fg_* folders inside a clip
    are not reported. Directories below parent that cannot be listed are
    skipped with a warning. A symlink to a clip folder is reported, but other
    symlinked directories are not descended into.

    Args:
        parent: Directory to search

    Returns:
        List[ClipRecord]: Clips in no particular order

    Raises:
        OSError: If parent itself cannot be listed
    """
    top = os.path.abspath(parent)
    clips = []

    stack = [top]
    while stack:
        directory = stack.pop()
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            if directory == top:
                raise
            logger.warning(f"Skipping unreadable directory {directory}: {e}")
            continue

        for entry in entries:
            try:
                if not entry.is_dir():
                    continue
                is_link = entry.is_symlink()
            except OSError as e:
                logger.warning(f"Skipping {entry.path}: {e}")
                continue

            if is_clip_dir_name(entry.name):
                parsed = parse_clip_dir_name(entry.name)
                if parsed is not None:
                    appid, date, time = parsed
                    clips.append(ClipRecord(Path(entry.path), appid, date, time))
                continue

            # linked clip folders count, but never walk through a link (cycles)
            if not is_link:
                stack.append(entry.path)

    return clips


def select_clips(clips: Iterable[ClipRecord], app_ids: Optional[Iterable[int]] = None) -> List[ClipRecord]:
    """Keep clips for the given appids (all when app_ids is empty) sorted by path."""
    wanted = set(app_ids or ())
    selected = [c for c in clips if not wanted or c.appid in wanted]
    selected.sort(key=lambda c: c.path)
    return selected


# ---------------------------------------------------------------------------
# Cascading cleanup of clip_<appid>_<date>_<time> containers
# ---------------------------------------------------------------------------

class CleanupDecision(enum.Enum):
    NOT_CONTAINER = "not_container"
    HAS_SIBLINGS = "has_siblings"
    NOT_CONTAINER_GRANDPARENT = "not_container_grandparent"
    ELIGIBLE = "eligible"


def decide_container_cleanup(clip_dir: Path, probe: Optional[LocalFilesystem] = None) -> CleanupDecision:
    """
    Decide whether removing clip_dir left its clip_* container empty.

    Steam lays background recordings out as clip_<appid>_<date>_<time>/video/fg_...
    The container is only eligible when the parent is a "video" directory with
    no subdirectories left and the grandparent has the clip_* name shape.
    Nothing is removed here.
    """
    probe = probe or LOCAL_FILESYSTEM
    clip_dir = Path(clip_dir)
    video_dir = clip_dir.parent

    if video_dir == clip_dir or video_dir.name != CONTAINER_VIDEO_DIR or not probe.is_dir(video_dir):
        return CleanupDecision.NOT_CONTAINER

    try:
        entries = probe.list_dir(video_dir)
    except OSError as e:
        # Can't prove the folder is empty; leave it alone.
        logger.warning(f"Could not list {video_dir}: {e}")
        return CleanupDecision.HAS_SIBLINGS
    if any(is_dir for _, is_dir in entries):
        return CleanupDecision.HAS_SIBLINGS

    container = video_dir.parent
    if container == video_dir or not is_container_dir_name(container.name):
        return CleanupDecision.NOT_CONTAINER_GRANDPARENT

    return CleanupDecision.ELIGIBLE


def maybe_cascade_cleanup(clip: ClipRecord, probe: Optional[LocalFilesystem] = None) -> bool:
    """
    Remove the clip_* container of an already deleted clip folder if it is now empty.

    Returns:
        bool: True if the container was removed
    """
    decision = decide_container_cleanup(clip.path, probe)
    if decision is not CleanupDecision.ELIGIBLE:
        logger.debug(f"Keeping parents of {clip.path}: {decision.value}")
        return False

    container = clip.path.parent.parent
    try:
        shutil.rmtree(container)
    except OSError as e:
        logger.warning(f"Failed to remove {container}: {e}")
        return False
    logger.info(f"Deleted container folder: {container}")
    return True


# ---------------------------------------------------------------------------
# Naming helpers
# ---------------------------------------------------------------------------

def sanitize_filename(filename: str, max_bytes: int = MAX_FILENAME_BYTES) -> str:
    """
    Make a game name safe to use as a file name on Windows, macOS, and Linux.

    Invalid and control characters are dropped (spaces are kept), trailing
    dots and spaces are trimmed, and Windows device names such as CON become
    empty. The result may be an empty string.
    """
    sanitized = ''.join(
        ch for ch in filename
        if ch not in INVALID_FILENAME_CHARS and ord(ch) >= 32 and ord(ch) != 127
    )
    sanitized = sanitized.strip().rstrip('. ')

    if sanitized in ('.', '..'):
        return ''
    if sanitized.split('.')[0].upper() in WINDOWS_RESERVED_NAMES:
        return ''

    encoded = sanitized.encode('utf-8')
    if len(encoded) > max_bytes:
        sanitized = encoded[:max_bytes].decode('utf-8', errors='ignore').rstrip('. ')
    return sanitized


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------

class SteamClipConverter:
    """
    Names, remuxes, and optionally deletes discovered clip folders, one at a time.
    """

    CONFIG_DIR = os.path.join(
        os.environ.get('LOCALAPPDATA', os.path.expanduser("~")), 'SteamClipConverter'
    )
    LOG_DIR = os.path.join(CONFIG_DIR, 'logs')
    STEAM_APP_DETAILS_URL = "https://store.steampowered.com/api/appdetails"
    CURRENT_VERSION = "v1.0.0"

    def __init__(self, output_dir: str, steamapps_roots: Optional[List[Path]] = None,
                 ffmpeg_path: Optional[str] = None, fetch_names: bool = False,
                 delete_after: bool = False):
        # ffmpeg runs inside the clip folder, so the output must be absolute
        self.output_dir = Path(os.path.abspath(output_dir))
        if steamapps_roots is None:
            steamapps_roots = discover_steamapps_roots()
        self.steamapps_roots = list(steamapps_roots)
        self.ffmpeg_path = ffmpeg_path
        self.fetch_names = fetch_names
        self.delete_after = delete_after
        self._store_names: Dict[int, Optional[str]] = {}
        self.logger = logger

    def get_ffmpeg_exe(self) -> str:
        if not self.ffmpeg_path:
            self.ffmpeg_path = iio.get_ffmpeg_exe()
        return self.ffmpeg_path

    def fetch_game_name_from_steam(self, appid: int) -> Optional[str]:
        """Fetch game name from the Steam store API"""
        if appid in self._store_names:
            return self._store_names[appid]

        name = None
        try:
            response = requests.get(
                self.STEAM_APP_DETAILS_URL,
                params={'appids': appid, 'filters': 'basic'},
                timeout=10,
            )
            response.raise_for_status()
            data = response.json()
            entry = data.get(str(appid)) or {}
            if entry.get('success'):
                name = entry['data']['name']
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            self.logger.warning(f"Failed to fetch game name for {appid}: {e}")

        self._store_names[appid] = name
        return name

    def display_name(self, appid: int) -> str:
        """
        Get the game name for an appid.

        Local appmanifest files are checked first; the Steam store is only
        asked when fetch_names is enabled. Falls back to the appid itself.
        """
        name = resolve_app_name(appid, self.steamapps_roots)
        if not name and self.fetch_names:
            name = self.fetch_game_name_from_steam(appid)
        return name or str(appid)

    def output_path_for(self, clip: ClipRecord) -> Path:
        return self.output_dir / clip.output_filename(self.display_name(clip.appid))

    def remux(self, clip: ClipRecord, output_file: Path) -> Tuple[bool, str]:
        """
        Copy the clip's streams from session.mpd into output_file with ffmpeg.

        Returns:
            Tuple[bool, str]: (success_flag, result_message)
        """
        try:
            ffmpeg_path = self.get_ffmpeg_exe()
        except RuntimeError as e:
            return False, f"ffmpeg not available: {e}"

        # session.mpd references its segments by relative path
        cmd = [
            ffmpeg_path,
            '-hide_banner',
            '-loglevel', 'error',
            '-y',
            '-i', SESSION_MANIFEST,
            '-map', '0:v:0',
            '-map', '0:a:0?',
            '-c', 'copy',
            '-movflags', '+faststart',
            str(output_file),
        ]
        self.logger.debug(f"FFmpeg command: {' '.join(cmd)}")

        try:
            subprocess.run(cmd, cwd=str(clip.path), check=True, capture_output=True,
                           creationflags=subprocess.CREATE_NO_WINDOW if os.name == 'nt' else 0)
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode(errors='replace').strip() if e.stderr else ''
            return False, f"FFmpeg exited with status {e.returncode} for {clip.path}: {stderr or e}"
        except OSError as e:
            return False, f"Failed to launch ffmpeg for {clip.path}: {e}"

        return True, f"Wrote {output_file}"

    def apply_start_time(self, clip: ClipRecord, output_file: Path) -> bool:
        """Set access and modification times of output_file to the clip start (UTC)."""
        started_at = clip.started_at
        if started_at is None:
            self.logger.warning(f"Could not parse start time {clip.date} {clip.time} for {output_file}")
            return False

        timestamp = started_at.timestamp()
        try:
            os.utime(output_file, (timestamp, timestamp))
        except OSError as e:
            self.logger.warning(f"Failed to set file times on {output_file}: {e}")
            return False
        return True

    def delete_clip(self, clip: ClipRecord) -> bool:
        """Delete a converted clip folder, then its clip_* container if that is now empty."""
        try:
            shutil.rmtree(clip.path)
        except OSError as e:
            self.logger.warning(f"Delete failed for {clip.path}: {e}")
            return False
        self.logger.info(f"Deleted source folder: {clip.path}")
        maybe_cascade_cleanup(clip)
        return True

    def process_single_clip(self, clip: ClipRecord) -> Tuple[bool, str]:
        """
        Convert one clip folder to MP4.

        Args:
            clip: Clip folder to convert

        Returns:
            Tuple[bool, str]: (success_flag, result_message)
        """
        self.logger.info(f"== {clip.path} (appid={clip.appid}, start={clip.date} {clip.time}) ==")

        if not (clip.path / SESSION_MANIFEST).is_file():
            return False, f"Missing {SESSION_MANIFEST} in {clip.path}"

        output_file = self.output_path_for(clip)
        self.logger.info(f"Converting to {output_file}")

        success, message = self.remux(clip, output_file)
        if not success:
            return False, message

        self.apply_start_time(clip, output_file)

        if self.delete_after:
            self.delete_clip(clip)

        return True, f"Successfully converted: {output_file.name}"

    def process_clips(self, clips: List[ClipRecord]) -> Dict[str, object]:
        """
        Convert clips sequentially; one clip failing never stops the rest.

        Returns:
            Dict containing 'successful', 'failed', and 'total' keys
        """
        os.makedirs(self.output_dir, exist_ok=True)

        results = {
            'successful': [],
            'failed': [],
            'total': len(clips)
        }

        if not clips:
            self.logger.warning("No clips to process")
            return results

        self.logger.info(f"Processing {len(clips)} clips into {self.output_dir}...")

        for clip in clips:
            try:
                success, message = self.process_single_clip(clip)
            except Exception as e:
                success, message = False, f"Unexpected error: {e}"

            if success:
                results['successful'].append(clip)
                self.logger.info(f"[SUCCESS] {message}")
            else:
                results['failed'].append((clip, message))
                self.logger.error(f"[FAILED] {message}")

        return results


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------

def setup_logging(log_dir: Optional[str] = None, verbose: bool = False):
    """Log to stdout and, when log_dir is set, to a timestamped file in it."""
    import io
    if platform.system() == "Windows":
        # Force UTF-8 encoding on Windows to handle unicode game names
        stdout_wrapper = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace')
        stream_handler = logging.StreamHandler(stdout_wrapper)
    else:
        stream_handler = logging.StreamHandler(sys.stdout)

    handlers = [stream_handler]
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        handlers.append(logging.FileHandler(os.path.join(log_dir, f"{timestamp}.log"), encoding='utf-8'))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s %(levelname)s: %(message)s',
        handlers=handlers
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="steamclipconverter",
        description="Convert Steam 'fg_*' clip folders (with session.mpd) to MP4",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                  # Search <SteamRoot>/userdata
  %(prog)s ~/clips                          # Same as --input ~/clips
  %(prog)s --game-id 570 --game-id 294100   # Only Dota 2 and 7 Days to Die
  %(prog)s --output ~/Videos/Clips          # Set custom output directory
  %(prog)s --delete-after                   # Delete clip folders after export
  %(prog)s --list-clips                     # List clips without converting
  %(prog)s --detect-paths                   # Show Steam library folders
        """)

    parser.add_argument('input_positional', nargs='?', metavar='INPUT',
                        help='Shorthand for --input')
    parser.add_argument('--input', type=str,
                        help='Directory to search recursively (default: <SteamRoot>/userdata)')
    parser.add_argument('--output', type=str,
                        help='Output directory (default: current directory)')
    parser.add_argument('--game-id', '--gameId', dest='game_ids', type=int, action='append',
                        default=[], metavar='APPID',
                        help='Only convert clips for this appid; repeatable')
    parser.add_argument('--delete-after', action='store_true',
                        help="Delete each fg_* folder after successful conversion, and its "
                             "clip_* grandparent when the 'video' folder is left empty")
    parser.add_argument('--list-clips', action='store_true',
                        help='List matching clips without converting')
    parser.add_argument('--detect-paths', action='store_true',
                        help='Show Steam roots and library folders and exit')
    parser.add_argument('--fetch-names', action='store_true',
                        help='Ask the Steam store for names missing from local manifests')
    parser.add_argument('--ffmpeg', type=str,
                        help='ffmpeg executable (default: the one bundled with imageio-ffmpeg)')
    parser.add_argument('--log-dir', type=str, default=SteamClipConverter.LOG_DIR,
                        help='Directory for log files; pass "" to disable')
    parser.add_argument('--verbose', action='store_true',
                        help='Enable debug logging')
    return parser


def default_input_dir() -> Optional[Path]:
    """<SteamRoot>/userdata for the first existing Steam root, or the first candidate."""
    candidates = default_steam_root_candidates()
    if not candidates:
        logger.error("No --input provided and no default Steam root is known for this OS. "
                     "Try: --input \"/path/to/Steam/userdata\"")
        return None

    chosen = next((c for c in candidates if c.is_dir()), candidates[0])
    userdata = chosen / "userdata"
    logger.warning(f"No --input provided. Defaulting to Steam userdata: {userdata} "
                   f"(searched: {', '.join(str(c) for c in candidates)}). "
                   f"Pass --input \"<dir>\" to override.")
    return userdata


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI interface for Steam Clip Converter."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_dir, args.verbose)

    print(f"Steam Clip Converter {SteamClipConverter.CURRENT_VERSION} - Export Steam Recordings to MP4")
    print("=" * 70)

    if args.detect_paths:
        candidates = default_steam_root_candidates()
        print("Steam roots checked:")
        for candidate in candidates:
            print(f"  {candidate}{'' if candidate.is_dir() else '  (missing)'}")
        roots = discover_steamapps_roots(candidates)
        if roots:
            print("Steam library folders:")
            for i, root in enumerate(roots, 1):
                print(f"  {i}. {root}")
        else:
            print("No Steam library folders detected.")
        return 0

    input_dir = args.input or args.input_positional
    input_dir = Path(input_dir) if input_dir else default_input_dir()
    if input_dir is None:
        return 2
    if not input_dir.is_dir():
        logger.error(f"Input is not a directory: {input_dir}")
        return 2

    output_dir = args.output or os.getcwd()
    if not args.list_clips:
        try:
            os.makedirs(output_dir, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create output directory {output_dir}: {e}")
            return 2

    steamapps_roots = discover_steamapps_roots()

    try:
        clips = find_clip_dirs(input_dir)
    except OSError as e:
        logger.error(f"Cannot read input directory {input_dir}: {e}")
        return 1

    if not clips:
        print(f"No fg_* clip folders found under {input_dir}")
        return 0

    clips = select_clips(clips, args.game_ids)
    if not clips:
        print("Nothing to convert after --game-id filtering.")
        return 0

    converter = SteamClipConverter(
        output_dir,
        steamapps_roots=steamapps_roots,
        ffmpeg_path=args.ffmpeg,
        fetch_names=args.fetch_names,
        delete_after=args.delete_after,
    )

    if args.list_clips:
        print(f"Found {len(clips)} clip folder(s):")
        for i, clip in enumerate(clips, 1):
            started_at = clip.started_at
            when = started_at.strftime("%Y-%m-%d %H:%M:%S UTC") if started_at else f"{clip.date} {clip.time}"
            print(f"  {i:3d}. {converter.display_name(clip.appid)}")
            print(f"       {when}  {clip.path}")
        return 0

    print(f"Found {len(clips)} clip folder(s).")
    start_time = datetime.now()
    results = converter.process_clips(clips)
    end_time = datetime.now()

    print(f"\nProcessing completed in {end_time - start_time}")
    print(f"Results: {len(results['successful'])}/{results['total']} successful")
    if results['failed']:
        print(f"Failed: {len(results['failed'])}/{results['total']}")
        for clip, error in results['failed']:
            print(f"  - {clip.path.name}: {error}")

    # Individual clip failures are reported above but do not fail the run
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}")
        traceback.print_exc()
        sys.exit(1)
