from typing import Dict

from chalicelib import images
from chalicelib.utils import app as utils_app, s3 as utils_s3
from chalicelib.utils.errors import ErrorCategory
from chalicelib.utils.exceptions import InvalidUpload
from chalicelib.utils.logger import logger


def _full_path(folder_path: str, file_name: str) -> str:
    return f'{folder_path}/{file_name}'.replace('//', '/').lstrip('/') if folder_path else file_name


@utils_app.service_operation('Failed to upload file', category=ErrorCategory.STORAGE)
def upload_file(content: bytes, file_name: str, content_type: str = 'application/octet-stream',
                folder_path: str = '', generate_unique_filename: bool = True) -> Dict:
    if not content:
        raise InvalidUpload('The uploaded file is empty')
    final_name = images.generate_unique_filename(file_name) if generate_unique_filename else file_name
    path = _full_path(folder_path, final_name)
    utils_s3.upload_file_to_s3(content, path, content_type)
    logger.info(f'upload_file ::: {file_name=} stored as {path=}')
    return {'path': path, 'url': utils_s3.get_file_url(path)}


@utils_app.service_operation('Failed to upload image', category=ErrorCategory.STORAGE)
def upload_image(content: bytes, file_name: str, folder_path: str) -> Dict:
    return images.upload_image(content, file_name, folder_path)


@utils_app.service_operation('Failed to get download URL', category=ErrorCategory.STORAGE)
def get_download_url(path: str, expires_in: int = 3600) -> Dict:
    if not path:
        raise InvalidUpload('File path is required')
    return {'path': path, 'url': utils_s3.get_download_url(path, expires_in=expires_in)}


@utils_app.service_operation('Failed to delete file', category=ErrorCategory.STORAGE)
def delete_file(path: str) -> Dict:
    if not path:
        raise InvalidUpload('File path is required')
    utils_s3.delete_file_from_s3(path)
    return {'path': path, 'deleted': True}
