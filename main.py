from pathlib import Path

from rich.pretty import pprint

from propulse import *


PORT = Property("-p", "--port", kind=integer, default=8080, descr="Port the server listens on.")
WORKERS = Property(
    "-w", "--workers",
    kind=integer,
    default_factory=lambda service: 2 if service.value(DEBUG) else 8,
    depends=(DEBUG,),
    descr="Number of request workers.",
)


@loader("--cache", kind=directory, default=Path("cache"), descr="Cache directory, created on load.")
def CACHE(instance):
    ensure_directory(instance)


if __name__ == '__main__':
    set_application_name("demo-server")
    for spec in (PORT, WORKERS, CACHE):
        register(spec)
    parse_or_exit()
    pprint({spec.name: value(spec) for spec in (PORT, WORKERS, CACHE)})
