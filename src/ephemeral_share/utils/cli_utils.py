from rich.console import Console


def get_rich_console() -> Console:
    # soft_wrap: длинные пути к файлам не должны переноситься
    return Console(stderr=True, soft_wrap=True)
