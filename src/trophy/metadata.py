"""
Self-describing metadata for winner trophies.

Everything in here is a pure function of the token id: ownership and game history are never consulted,
so the same id always produces byte-identical output.
"""

from pydantic import BaseModel, ConfigDict

from src.trophy.codec import (
    JSON_MEDIA_TYPE,
    SVG_MEDIA_TYPE,
    from_data_uri,
    to_data_uri,
)

COLLECTION_NAME = "TicTacToe Winner"
COLLECTION_SYMBOL = "TTT"
TROPHY_DESCRIPTION = "Awarded to the winner of a game of tic-tac-toe played on the ledger."

SVG_TEMPLATE = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="350" height="350" viewBox="0 0 350 350">'
    '<rect width="100%" height="100%" fill="#1a1a2e"/>'
    '<text x="50%" y="30%" font-family="monospace" font-size="48" fill="#e94560" text-anchor="middle">X O X</text>'
    '<text x="50%" y="55%" font-family="monospace" font-size="28" fill="#ffffff" text-anchor="middle">WINNER</text>'
    '<text x="50%" y="75%" font-family="monospace" font-size="24" fill="#0f9b8e" text-anchor="middle">#{token_id}</text>'
    "</svg>"
)


class TrophyMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    image: str


def _check_token_id(token_id: int) -> None:
    if token_id < 0:
        raise ValueError(f"Token ids are non-negative, got {token_id}.")


def trophy_svg(token_id: int) -> str:
    _check_token_id(token_id)
    return SVG_TEMPLATE.format(token_id=token_id)


def describe(token_id: int) -> TrophyMetadata:
    """Name, description and embedded image of a trophy."""
    svg = trophy_svg(token_id)
    return TrophyMetadata(
        name=f"{COLLECTION_NAME} #{token_id}",
        description=TROPHY_DESCRIPTION,
        image=to_data_uri(SVG_MEDIA_TYPE, svg.encode("utf-8")),
    )


def token_uri(token_id: int) -> str:
    """The full metadata document, itself embedded as a JSON data URI."""
    document = describe(token_id).model_dump_json()
    return to_data_uri(JSON_MEDIA_TYPE, document.encode("utf-8"))


def decode_image(metadata: TrophyMetadata) -> str:
    """Recover the SVG markup embedded in a metadata document."""
    media_type, payload = from_data_uri(metadata.image)
    if media_type != SVG_MEDIA_TYPE:
        raise ValueError(f"Expected an {SVG_MEDIA_TYPE} image, got {media_type!r}.")
    return payload.decode("utf-8")


def metadata_from_uri(uri: str) -> TrophyMetadata:
    """Parse a document produced by token_uri()."""
    media_type, payload = from_data_uri(uri)
    if media_type != JSON_MEDIA_TYPE:
        raise ValueError(f"Expected a {JSON_MEDIA_TYPE} document, got {media_type!r}.")
    return TrophyMetadata.model_validate_json(payload)
