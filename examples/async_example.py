"""Example usage of the async OCI distribution client."""

import asyncio
import json
import logging

from oci_distribution_client import (
    Descriptor,
    DistributionError,
    ImageManifest,
    RegistryClient,
    RegistryError,
)
from oci_distribution_client.models import OCI_IMAGE_CONFIG, OCI_IMAGE_LAYER_TAR_GZIP

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def main():
    """Push a tiny image, then read it back."""
    registry_url = "http://localhost:15000"

    config = json.dumps({"architecture": "amd64", "os": "linux"}).encode("utf-8")
    layer = b"hello from the example layer"
    manifest = ImageManifest(
        config=Descriptor.for_blob(config, OCI_IMAGE_CONFIG),
        layers=[Descriptor.for_blob(layer, OCI_IMAGE_LAYER_TAR_GZIP)],
    )

    try:
        async with RegistryClient(registry_url, "examples/hello") as client:
            logger.info("Checking registry connectivity...")
            if not await client.ping():
                logger.error("Registry at %s does not speak the v2 API", registry_url)
                return

            # Blobs first, the manifest refers to them
            for blob in (config, layer):
                location = await client.push_blob(blob)
                logger.info("Pushed blob to %s", location)

            location = await client.push_manifest("latest", manifest)
            logger.info("Pushed manifest to %s", location)

            tags = await client.list_tags()
            logger.info("Tags: %s", tags)

            fetched = await client.get_manifest("latest")
            blobs = await asyncio.gather(
                *(client.get_blob(digest) for digest in fetched.layer_digests())
            )
            logger.info("Fetched %d layer(s), %d bytes", len(blobs), sum(map(len, blobs)))

    except RegistryError as e:
        logger.error("Registry error %s: %s", e.code, e.message)
    except DistributionError as e:
        logger.error("Client error: %s", e)


if __name__ == "__main__":
    asyncio.run(main())
