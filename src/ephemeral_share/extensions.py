import logging
from pathlib import Path

logger = logging.getLogger(__name__)

UNKNOWN_EXTENSION = "???"


def ext_by_path(name: str) -> str:
    """
    Расширение из имени файла, без точки. Архивы `.tar.*` сохраняют
    двойное расширение: "archive.tar.gz" -> "tar.gz", "README" -> "".
    """
    base = name.rsplit("/", 1)[-1]
    stem, dot, ext = base.rpartition(".")
    if not dot:
        return ""
    if ext and "." in stem and stem.rpartition(".")[2] == "tar":
        return f"tar.{ext}"
    return ext


def ext_by_content(path: Path) -> str:
    """Угадывает расширение по содержимому через libmagic."""
    # libmagic нужна только при включенном auto_file_ext
    import magic

    try:
        guessed = magic.Magic(extension=True).from_file(str(path))
        if guessed and guessed != UNKNOWN_EXTENSION:
            # libmagic отдает список вида "jpeg/jpg/jpe/jfif"
            return guessed.split("/", 1)[0]
        if "text" in magic.from_file(str(path)):
            return "txt"
    except magic.MagicException as e:
        logger.warning(f"Content sniffing failed for {path}: {e}")
    return ""


def derive_extension(original_name: str, tmp_path: Path, auto_detect: bool, max_len: int) -> str:
    ext = ext_by_path(original_name)
    if not ext and auto_detect:
        ext = ext_by_content(tmp_path)
    return ext[:max_len]
