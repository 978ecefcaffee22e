"""
Tests for converting embed specs into py-cord embeds.
"""

import discord

from tribot.datatypes.command_datatypes import EmbedSpec
from tribot.ui.embeds import build_embed


def test_build_embed_full():
    embed_spec = EmbedSpec(title="Help for command `roll`", color=0x228844, footer="bob")
    embed_spec.add_field("Aliases", "`dice`").add_field("Usage", "`;roll <dice>`")

    embed = build_embed(embed_spec)

    assert embed.title == "Help for command `roll`"
    assert embed.color == discord.Color(0x228844)
    assert embed.footer.text == "bob"
    assert [f.name for f in embed.fields] == ["Aliases", "Usage"]
    assert embed.fields[0].value == "`dice`"
    assert embed.fields[0].inline is False


def test_build_embed_minimal():
    embed = build_embed(EmbedSpec(description="only text"))

    assert embed.description == "only text"
    assert embed.fields == []
    assert embed.footer is None or not embed.footer.text
