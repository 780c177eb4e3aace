# outlook.py
# -----------------------------------------------------------------------------
# Process-scoped Outlook/MAPI state for one export run (pywin32):
#   - COM on the calling thread; every later call must come from that thread
#   - extended MAPI session (needed by IConverterSession and the address book)
#   - IConverterSession configured for RFC 1521 / quoted-printable output
#   - Outlook.Application and its MAPI namespace
#   - one HGLOBAL-backed IStream reused for every conversion
#
# Outlook prerequisites:
#   1) Outlook installed with a default mail profile configured.
#   2) The default profile opens without prompts.
# -----------------------------------------------------------------------------

import logging

import pythoncom
import win32com.client as win32
from win32com.mapi import mapi

from .errors import InitializationError

logger = logging.getLogger(__name__)

CLSID_IConverterSession = "{4e3a7680-b77a-11d0-9da5-00c04fd65685}"
IID_IConverterSession = "{4b401570-b77b-11d0-9da5-00c04fd65685}"

SAVE_RFC1521 = 1
IET_QP = 3
WRAP_WIDTH = 74
AB_NO_DIALOG = 0x00000001


def _configure(converter, method, *args):
    """Apply an optional converter setting; older MAPI builds lack some."""
    fn = getattr(converter, method, None)
    if fn is None:
        logger.debug("Converter has no %s", method)
        return False
    try:
        fn(*args)
        return True
    except Exception as e:
        logger.warning("%s: %s", method, e)
        return False


class OutlookSession:
    """
    with OutlookSession() as session:
        session.namespace   # Outlook MAPI namespace (folder tree root)
        session.converter   # IConverterSession
        session.stream      # reusable IStream
    """
    def __init__(self, profile=None):
        self.profile = profile
        self.app = None
        self.namespace = None
        self.mapi_session = None
        self.converter = None
        self.stream = None
        self._com = False
        self._mapi = False

    def __enter__(self):
        try:
            self.open()
        except Exception:
            self.close()
            raise
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def open(self):
        pythoncom.CoInitialize()
        self._com = True
        try:
            mapi.MAPIInitialize(None)
            self._mapi = True
        except Exception as e:
            raise InitializationError(f"MAPIInitialize: {e}") from e

        self.converter = self._create_converter()

        try:
            self.mapi_session = mapi.MAPILogonEx(
                0, self.profile, None, mapi.MAPI_EXTENDED | mapi.MAPI_USE_DEFAULT)
        except Exception as e:
            raise InitializationError(f"createMAPISession: {e}") from e

        try:
            self.app = win32.Dispatch("Outlook.Application")
            self.namespace = self.app.GetNamespace("MAPI")
        except Exception as e:
            raise InitializationError(f"Failed to create Outlook application: {e}") from e

        self._log_application()

        try:
            self.stream = pythoncom.CreateStreamOnHGlobal(None, True)
        except Exception as e:
            raise InitializationError(f"CreateStreamOnHGlobal: {e}") from e

    def _create_converter(self):
        try:
            converter = pythoncom.CoCreateInstance(
                CLSID_IConverterSession, None, pythoncom.CLSCTX_INPROC_SERVER,
                IID_IConverterSession)
        except Exception as e:
            raise InitializationError(f"createConverterSession: {e}") from e
        _configure(converter, "SetSaveFormat", SAVE_RFC1521)
        _configure(converter, "SetEncoding", IET_QP)
        _configure(converter, "SetTextWrapping", True, WRAP_WIDTH)
        return converter

    def _log_application(self):
        info = []
        for prop in ("Name", "Version", "ProductCode", "DefaultProfileName"):
            try:
                info.append(f"{prop}: {getattr(self.app, prop)}")
            except Exception:
                info.append(f"{prop}: ?")
        logger.info(", ".join(info))

    def enable_address_book(self):
        """Let the converter resolve Exchange addresses to SMTP; best effort."""
        try:
            book = self.mapi_session.OpenAddressBook(0, None, AB_NO_DIALOG)
        except Exception as e:
            logger.warning("OpenAddressBook: %s", e)
            return False
        if book is None:
            return False
        return _configure(self.converter, "SetAdrBook", book)

    def close(self):
        self.stream = None
        self.converter = None
        self.namespace = None
        self.app = None
        if self.mapi_session is not None:
            try:
                self.mapi_session.Logoff(0, 0, 0)
            except Exception as e:
                logger.warning("Logoff: %s", e)
            self.mapi_session = None
        if self._mapi:
            mapi.MAPIUninitialize()
            self._mapi = False
        if self._com:
            pythoncom.CoUninitialize()
            self._com = False
