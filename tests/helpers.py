from pathlib import Path


def write_cue(path: Path, audio_name: str | None, titles: list[str], performer: str = "The Band", album: str = "Live") -> Path:
    lines = [f'PERFORMER "{performer}"', f'TITLE "{album}"']
    if audio_name is not None:
        lines.append(f'FILE "{audio_name}" WAVE')
    for i, title in enumerate(titles, start=1):
        lines += [
            f"  TRACK {i:02d} AUDIO",
            f'    TITLE "{title}"',
            f"    INDEX 01 0{i}:00:00",
        ]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def touch(path: Path, data: bytes = b"data") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path
