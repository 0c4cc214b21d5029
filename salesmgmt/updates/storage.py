"""
Storage for uploaded client builds

Layout under UPDATES_STORAGE_PATH:
    {version}/sales-management-{version}.jar

The database keeps the relative path ``versions/{version}/{file name}``.
"""
import hashlib
import logging
import os
import zipfile

from django.conf import settings
from django.core.exceptions import SuspiciousFileOperation
from django.core.files.storage import FileSystemStorage

from salesmgmt.core.exceptions import FileUploadException
from .models import is_valid_version_number

logger = logging.getLogger(__name__)

RELATIVE_PREFIX = 'versions'
ALLOWED_EXTENSIONS = ('jar',)
ALLOWED_MIME_TYPES = (
    'application/java-archive',
    'application/x-java-archive',
    'application/zip',
    'application/octet-stream',
)
ZIP_SIGNATURES = (b'PK\x03\x04', b'PK\x01\x02', b'PK\x05\x06', b'PK\x07\x08')
MAX_JAR_ENTRIES = 10000
MAX_MANIFEST_SIZE = 64 * 1024
MAX_ENTRY_NAME_LENGTH = 1024
MANIFEST_NAME = 'META-INF/MANIFEST.MF'
SUSPICIOUS_MANIFEST_ATTRIBUTES = (
    'Agent-Class:', 'Premain-Class:', 'Boot-Class-Path:', 'Can-Redefine-Classes:', 'Can-Retransform-Classes:',
)
NATIVE_EXTENSIONS = ('.exe', '.dll', '.so', '.dylib', '.bat', '.sh', '.cmd', '.ps1')
CHUNK_SIZE = 64 * 1024


def max_file_size():
    return settings.UPDATES_MAX_FILE_SIZE


def file_extension(file_name):
    if not file_name or '.' not in file_name:
        return ''
    return file_name.rsplit('.', 1)[1]


def stored_file_name(version_number):
    return f"sales-management-{version_number}.jar"


def relative_path(version_number, file_name):
    return f"{RELATIVE_PREFIX}/{version_number}/{file_name}"


def sha256_of_upload(uploaded_file):
    digest = hashlib.sha256()
    uploaded_file.seek(0)
    for chunk in uploaded_file.chunks(CHUNK_SIZE):
        digest.update(chunk)
    uploaded_file.seek(0)
    return digest.hexdigest()


def sha256_of_stored(file_storage, name):
    digest = hashlib.sha256()
    with file_storage.open(name, 'rb') as handle:
        for chunk in handle.chunks(CHUNK_SIZE):
            digest.update(chunk)
    return digest.hexdigest()


# Validation

def validate_version_number(version_number):
    if not version_number or not version_number.strip():
        raise FileUploadException("Version number cannot be null or empty")
    if '..' in version_number or '/' in version_number or '\\' in version_number:
        raise FileUploadException(f"Version number contains invalid characters: {version_number}")
    if not is_valid_version_number(version_number):
        raise FileUploadException(f"Invalid version number format: {version_number}")


def validate_upload(uploaded_file):
    """Run every structural check on an uploaded JAR before it touches the storage root"""
    file_name = uploaded_file.name or ''

    if not uploaded_file.size:
        raise FileUploadException.empty_file(file_name)
    if uploaded_file.size > max_file_size():
        raise FileUploadException.file_too_large(file_name, uploaded_file.size, max_file_size())

    if not file_name.strip():
        raise FileUploadException.invalid_file_name("File name cannot be empty")
    if '..' in file_name or '/' in file_name or '\\' in file_name:
        raise FileUploadException.invalid_file_name("File name contains invalid path characters")

    if file_extension(file_name).lower() not in ALLOWED_EXTENSIONS:
        raise FileUploadException.invalid_file_type(file_name, "Only JAR files are allowed for application updates")

    content_type = getattr(uploaded_file, 'content_type', None)
    if content_type:
        if content_type.lower() not in ALLOWED_MIME_TYPES:
            logger.warning(f"Invalid MIME type for JAR file: {file_name} ({content_type})")
            raise FileUploadException.invalid_mime_type(
                file_name, content_type, "application/java-archive or application/x-java-archive"
            )
    else:
        logger.warning(f"No MIME type provided for file: {file_name}")

    validate_magic_bytes(uploaded_file, file_name)
    validate_jar_contents(uploaded_file, file_name)


def validate_magic_bytes(uploaded_file, file_name):
    uploaded_file.seek(0)
    header = uploaded_file.read(4)
    uploaded_file.seek(0)
    if len(header) < 4:
        raise FileUploadException.invalid_file_structure(file_name, "File is too small to be a valid JAR archive")
    if header[:2] != b'PK':
        raise FileUploadException.invalid_file_structure(file_name, "File does not have valid ZIP/JAR magic bytes")
    if header not in ZIP_SIGNATURES:
        raise FileUploadException.invalid_file_structure(file_name, "Invalid ZIP signature in JAR file")


def validate_entry_name(entry_name, file_name, suspicious):
    if '../' in entry_name or '..\\' in entry_name:
        suspicious.add('path-traversal')
        raise FileUploadException.suspicious_jar_content(
            file_name, f"Entry contains path traversal sequence: {entry_name}"
        )
    if entry_name.startswith(('/', '\\')) or (len(entry_name) > 1 and entry_name[1] == ':'):
        suspicious.add('absolute-path')
        raise FileUploadException.suspicious_jar_content(file_name, f"Entry contains absolute path: {entry_name}")
    if entry_name.lower().endswith(NATIVE_EXTENSIONS):
        suspicious.add('executable-files')
        logger.warning(f"Suspicious executable file found in JAR {file_name}: {entry_name}")
    if len(entry_name) > MAX_ENTRY_NAME_LENGTH:
        suspicious.add('long-filename')
        raise FileUploadException.suspicious_jar_content(
            file_name, f"Entry name is too long: {entry_name[:100]}..."
        )


def validate_manifest(archive, info, file_name):
    if info.file_size >= MAX_MANIFEST_SIZE:
        raise FileUploadException.invalid_jar_manifest(file_name, "Manifest file is too large")
    with archive.open(info) as handle:
        content = handle.read(MAX_MANIFEST_SIZE).decode('utf-8', errors='replace')
    if not content.startswith('Manifest-Version:'):
        raise FileUploadException.invalid_jar_manifest(
            file_name, "Invalid manifest format - missing Manifest-Version"
        )
    for attribute in SUSPICIOUS_MANIFEST_ATTRIBUTES:
        if attribute in content:
            logger.warning(f"Potentially suspicious manifest attribute found in {file_name}: {attribute}")


def validate_jar_contents(uploaded_file, file_name):
    uploaded_file.seek(0)
    suspicious = set()
    has_manifest = False
    try:
        with zipfile.ZipFile(uploaded_file) as archive:
            entries = archive.infolist()
            if not entries:
                raise FileUploadException.invalid_file_structure(file_name, "JAR file appears to be empty")
            if len(entries) >= MAX_JAR_ENTRIES:
                raise FileUploadException.suspicious_jar_content(
                    file_name, "JAR file contains too many entries (potential zip bomb)"
                )

            for info in entries:
                validate_entry_name(info.filename, file_name, suspicious)
                if info.file_size > max_file_size():
                    raise FileUploadException.suspicious_jar_content(
                        file_name, f"Entry '{info.filename}' is suspiciously large ({info.file_size} bytes)"
                    )
                if info.filename == MANIFEST_NAME:
                    has_manifest = True
                    validate_manifest(archive, info, file_name)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as e:
        raise FileUploadException.corrupted_jar_file(file_name, f"Unable to read JAR contents: {e}")
    finally:
        uploaded_file.seek(0)

    if not has_manifest:
        logger.warning(f"JAR file {file_name} does not contain MANIFEST.MF")
    if suspicious:
        logger.warning(f"Suspicious patterns found in JAR file {file_name}: {sorted(suspicious)}")


# Storage

def get_storage():
    """File storage rooted at UPDATES_STORAGE_PATH, built per call so settings overrides apply"""
    return FileSystemStorage(location=settings.UPDATES_STORAGE_PATH)


def storage_name(stored_path):
    """Name inside the storage for a database path, refusing anything outside the root"""
    name = stored_path.replace('\\', '/')
    if name.startswith(f"{RELATIVE_PREFIX}/"):
        name = name[len(RELATIVE_PREFIX) + 1:]
    try:
        get_storage().path(name)
    except SuspiciousFileOperation:
        logger.warning(f"Security check failed for path: {stored_path}")
        raise FileUploadException(f"Access denied: Invalid file path {stored_path}")
    return name


def resolve_path(stored_path):
    return get_storage().path(storage_name(stored_path))


def store_file(uploaded_file, version_number):
    """Validate and store an upload; returns (relative path, size, sha256)"""
    validate_upload(uploaded_file)
    validate_version_number(version_number)

    file_name = stored_file_name(version_number)
    name = f"{version_number}/{file_name}"
    file_storage = get_storage()
    checksum = sha256_of_upload(uploaded_file)
    try:
        # save() would pick a new name next to a leftover copy
        if file_storage.exists(name):
            file_storage.delete(name)
        uploaded_file.seek(0)
        name = file_storage.save(name, uploaded_file)
    except OSError as e:
        logger.error(f"Could not store file {file_name}: {e}")
        raise FileUploadException(f"Could not store file {file_name}. Please try again!")

    if sha256_of_stored(file_storage, name) != checksum:
        file_storage.delete(name)
        logger.error(f"Integrity check failed for {file_name}, stored copy removed")
        raise FileUploadException(f"File integrity check failed for: {file_name}")

    logger.info(f"Stored {file_name} for version {version_number}")
    return relative_path(version_number, file_name), file_storage.size(name), checksum


def load_file(stored_path):
    """Open a stored build for reading"""
    name = storage_name(stored_path)
    file_storage = get_storage()
    if not file_storage.exists(name) or os.path.isdir(file_storage.path(name)):
        raise FileUploadException.file_not_found(stored_path)
    return file_storage.open(name, 'rb')


def file_exists(stored_path):
    try:
        name = storage_name(stored_path)
    except FileUploadException:
        return False
    return os.path.isfile(get_storage().path(name))


def delete_file(stored_path):
    name = storage_name(stored_path)
    try:
        get_storage().delete(name)
    except OSError as e:
        logger.error(f"Failed to delete file {stored_path}: {e}")
        raise FileUploadException(f"Failed to delete file: {stored_path}")
    logger.info(f"Deleted file {stored_path}")


def files_in_version(version_number):
    name = storage_name(version_number)
    file_storage = get_storage()
    if not os.path.isdir(file_storage.path(name)):
        return []
    _, files = file_storage.listdir(name)
    return sorted(files)


def delete_version_directory(version_number):
    name = storage_name(version_number)
    file_storage = get_storage()
    if os.path.normpath(file_storage.path(name)) == os.path.normpath(file_storage.location):
        raise FileUploadException(f"Access denied: Invalid file path {version_number}")
    if not file_storage.exists(name):
        return
    try:
        _, files = file_storage.listdir(name)
        for file_name in files:
            file_storage.delete(f"{name}/{file_name}")
        file_storage.delete(name)
    except OSError as e:
        logger.error(f"Failed to delete version directory {version_number}: {e}")
        raise FileUploadException(f"Failed to delete version directory: {version_number}")
    logger.info(f"Deleted version directory {version_number}")
