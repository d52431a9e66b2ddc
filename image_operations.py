"""
Image Operations Module

Build, pull, push, save and list images. Streamed engine responses are read
to completion before an operation reports success.
"""

from typing import BinaryIO, Dict, List, Optional
from engine_client import engine_errors, IMAGE_ERRORS
from engine_stream import consume_build_stream, consume_pull_stream, consume_push_stream
from utils import log_image_operation

DIGEST_PREFIX = "sha256:"


class ImageOperations:
    """Image management on top of an injected docker client"""

    def __init__(self, client):
        self.client = client

    @property
    def api(self):
        return self.client.api

    def build_image(self, build_context: BinaryIO, tag: str) -> Optional[str]:
        """Build ``tag`` from a tar archive holding the Dockerfile and its files"""
        with engine_errors("build", tag, IMAGE_ERRORS):
            stream = self.api.build(
                fileobj=build_context, custom_context=True, tag=tag, decode=True
            )
            image_id = consume_build_stream(stream)

        log_image_operation("build", tag, "success", {"id": image_id})
        return image_id

    def pull_image(self, image: str) -> Optional[str]:
        with engine_errors("pull", image, IMAGE_ERRORS):
            stream = self.api.pull(image, stream=True, decode=True)
            digest = consume_pull_stream(stream)

        log_image_operation("pull", image, "success", {"digest": digest})
        return digest

    def push_image(self, image: str, auth_config: Optional[Dict[str, str]] = None) -> str:
        """Push ``image`` and return the digest the registry computed for it"""
        with engine_errors("push", image, IMAGE_ERRORS):
            stream = self.api.push(
                image, stream=True, decode=True, auth_config=auth_config
            )
            try:
                digest = consume_push_stream(stream)
            finally:
                close = getattr(stream, "close", None)
                if close is not None:
                    close()

        log_image_operation("push", image, "success", {"digest": digest})
        return digest

    def save_image(self, image: str) -> bytes:
        """Export ``image`` as a tar archive"""
        with engine_errors("save", image, IMAGE_ERRORS):
            archive = b"".join(self.api.get_image(image))

        log_image_operation("save", image, "success", {"size": len(archive)})
        return archive

    def list_images(self) -> List[str]:
        """Ids of the local images, without the sha256: prefix"""
        with engine_errors("list_images", "all", IMAGE_ERRORS):
            image_ids = self.api.images(quiet=True)
        return [
            image_id[len(DIGEST_PREFIX):] if image_id.startswith(DIGEST_PREFIX) else image_id
            for image_id in image_ids
        ]
