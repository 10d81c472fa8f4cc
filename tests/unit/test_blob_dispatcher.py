"""
Dispatch of verified content to the routed target container.
"""

import os

import pytest
from azure.core.exceptions import AzureError

from exceptions import BlobStreamingError, ConfigurationError
from services.blob_dispatcher import BlobDispatcher, DispatchTarget
from tests.fakes import FakeBlobRepository


@pytest.fixture
def target(clock):
    return FakeBlobRepository("crimetarget", clock=clock)


@pytest.fixture
def dispatcher(storage_config, target, blob_mover):
    return BlobDispatcher(storage_config, lambda name: {"crime": target}[name], blob_mover)


class TestDispatch:

    def test_small_content_is_a_single_upload(self, dispatcher, target):
        data = os.urandom(1024)

        result = dispatcher.dispatch("bulkscan", "a.zip", data)

        assert result == DispatchTarget(account="crime", container="bulkscan-target", blob_name="a.zip")
        assert target.content("bulkscan-target", "a.zip") == data
        assert ("bulkscan-target", "a.zip") not in target.committed_blocks

    def test_content_above_threshold_is_chunked(self, dispatcher, target):
        data = os.urandom(1025)

        dispatcher.dispatch("bulkscan", "a.zip", data)

        assert len(target.committed_blocks[("bulkscan-target", "a.zip")]) == 3
        assert target.content("bulkscan-target", "a.zip") == data

    def test_unrouted_container(self, dispatcher):
        with pytest.raises(ConfigurationError):
            dispatcher.dispatch("unknown", "a.zip", b"x")

    def test_failed_chunk_leaves_no_target_blob(self, dispatcher, target):
        target.fail_on["commit_block_list"] = AzureError("connection reset")

        with pytest.raises(BlobStreamingError):
            dispatcher.dispatch("bulkscan", "a.zip", os.urandom(4096))

        assert not target.blob_exists("bulkscan-target", "a.zip")

    def test_failed_single_upload_raises_streaming_error(self, dispatcher, target):
        target.fail_on["write_blob"] = AzureError("timeout")

        with pytest.raises(BlobStreamingError, match="bulkscan/a.zip"):
            dispatcher.dispatch("bulkscan", "a.zip", b"small")

    def test_redispatch_overwrites(self, dispatcher, target):
        dispatcher.dispatch("bulkscan", "a.zip", b"first")
        dispatcher.dispatch("bulkscan", "a.zip", b"second")
        assert target.content("bulkscan-target", "a.zip") == b"second"

    @pytest.mark.parametrize("failing_op,size", [("write_blob", 100), ("commit_block_list", 4096)])
    def test_failed_retry_keeps_earlier_target_copy(self, dispatcher, target, failing_op, size):
        dispatcher.dispatch("bulkscan", "a.zip", b"delivered")
        target.fail_on[failing_op] = AzureError("connection reset")

        with pytest.raises(BlobStreamingError):
            dispatcher.dispatch("bulkscan", "a.zip", os.urandom(size))

        assert target.content("bulkscan-target", "a.zip") == b"delivered"
