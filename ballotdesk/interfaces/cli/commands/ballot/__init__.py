"""投票用紙 CLI コマンドグループ."""

import click

from ballotdesk.interfaces.cli.commands.ballot.save import save
from ballotdesk.interfaces.cli.commands.ballot.show import show
from ballotdesk.interfaces.cli.commands.ballot.upload_image import upload_image
from ballotdesk.interfaces.cli.commands.ballot.validate import validate


@click.group()
def ballot():
    """投票用紙の表示・検証・保存."""
    pass


ballot.add_command(show)
ballot.add_command(validate)
ballot.add_command(save)
ballot.add_command(upload_image)
