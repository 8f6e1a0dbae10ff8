"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdpress.cli.commands import (
    backlinks_cmd,
    bilingual_cmd,
    convert_cmd,
    index_cmd,
    links_cmd,
    main_callback,
    text_cmd,
)


app = typer.Typer(name="mdpress", no_args_is_help=True, help="Markdown to platform-ready HTML publishing toolkit")

app.callback()(main_callback)
app.command(name="convert")(convert_cmd)
app.command(name="bilingual")(bilingual_cmd)
app.command(name="links")(links_cmd)
app.command(name="index")(index_cmd)
app.command(name="backlinks")(backlinks_cmd)
app.command(name="text")(text_cmd)
