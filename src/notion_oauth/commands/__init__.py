"""Built-in CLI sub-commands for notion-oauth.

* :mod:`~notion_oauth.commands.flow` -- ``authorize-url``, ``exchange`` and
  ``api-version``: drive the two halves of the flow by hand.
* :mod:`~notion_oauth.commands.serve` -- run the FastAPI app under uvicorn.
* :mod:`~notion_oauth.commands.config` -- view and write the user config.

Multi-command groups export a :class:`typer.Typer` sub-application; single
commands export a plain callback registered directly on the root app.
"""
