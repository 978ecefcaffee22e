"""Conversion of transport-neutral embed descriptions into py-cord embeds."""

import discord

from tribot.datatypes.command_datatypes import EmbedSpec


def build_embed(payload: EmbedSpec) -> discord.Embed:
    """Create a :class:`discord.Embed` from an :class:`EmbedSpec`.

    Args:
        payload: Title, description, colour, footer and fields to render.

    Returns:
        discord.Embed: Embed ready to send.
    """
    kwargs = {}
    if payload.title is not None:
        kwargs["title"] = payload.title
    if payload.description is not None:
        kwargs["description"] = payload.description
    if payload.url is not None:
        kwargs["url"] = payload.url
    if payload.color is not None:
        kwargs["color"] = discord.Color(payload.color)

    embed = discord.Embed(**kwargs)
    for embed_field in payload.fields:
        embed.add_field(name=embed_field.name, value=embed_field.value, inline=embed_field.inline)
    if payload.footer:
        embed.set_footer(text=payload.footer)
    return embed
