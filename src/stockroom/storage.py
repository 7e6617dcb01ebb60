"""Storage backend for location and asset images kept in S3."""

from storages.backends.s3boto3 import S3Boto3Storage


class ProxiedS3Storage(S3Boto3Storage):
    """S3 storage whose URLs point at the Django media proxy.

    Images live in a bucket that is not necessarily reachable from the
    browser, so ``url()`` returns the local ``/media/`` path served by
    :func:`stockroom.views.media_proxy`.
    """

    def url(self, name):
        return f"/media/{name}"
