"""Tests for logging setup and sensitive data masking."""

import logging

from common.logging_config import SensitiveDataFilter, get_logger, setup_logging


def _filtered(message, *args):
    record = logging.LogRecord('test', logging.INFO, __file__, 1, message, args, None)
    SensitiveDataFilter().filter(record)
    return record.getMessage()


class TestSensitiveDataFilter:

    def test_masks_presigned_signature(self):
        url = (
            'https://bucket.s3.amazonaws.com/root/a.pdf?X-Amz-Algorithm=AWS4-HMAC-SHA256'
            '&X-Amz-Credential=AKIDEXAMPLE%2F20240101%2Fus-east-1%2Fs3%2Faws4_request'
            '&X-Amz-Signature=abcdef0123456789'
        )

        message = _filtered(f'Issued {url}')

        assert 'abcdef0123456789' not in message
        assert 'AKIDEXAMPLE' not in message
        assert 'X-Amz-Algorithm=AWS4-HMAC-SHA256' in message

    def test_masks_legacy_signature(self):
        message = _filtered('url?AWSAccessKeyId=AKID&Signature=secretsig&Expires=1')

        assert 'AKID&' not in message
        assert 'secretsig' not in message
        assert 'Expires=1' in message

    def test_masks_credentials(self):
        message = _filtered('config secret_access_key=wJalrXUtnFEMI access_key_id=AKIDEXAMPLE')

        assert 'wJalrXUtnFEMI' not in message
        assert 'AKIDEXAMPLE' not in message

    def test_masks_args(self):
        message = _filtered('Issued %s', 'https://x?X-Amz-Signature=deadbeef')

        assert 'deadbeef' not in message

    def test_plain_messages_unchanged(self):
        assert _filtered('Folder created [folder_id=abc]') == 'Folder created [folder_id=abc]'


class TestSetupLogging:

    def test_setup_is_idempotent(self):
        logger = setup_logging('test_component_idempotent', log_level='DEBUG')
        assert logger.level == logging.DEBUG

        again = setup_logging('test_component_idempotent', log_level='DEBUG')

        assert logger is again
        assert len(logger.handlers) == 1
        assert not logger.propagate

    def test_handler_masks_output(self):
        logger = setup_logging('test_component_masking')

        assert any(isinstance(f, SensitiveDataFilter) for f in logger.handlers[0].filters)

    def test_format_layout(self):
        logger = setup_logging('test_component_format')
        record = logging.LogRecord('test_component_format', logging.INFO, __file__, 1, 'ready', None, None)

        line = logger.handlers[0].format(record)

        assert line.endswith(' - test_component_format - INFO - ready')

    def test_child_loggers_share_component_handler(self):
        setup_logging('test_component_parent')

        child = get_logger('test_component_parent.services')

        assert child.parent.name == 'test_component_parent'
