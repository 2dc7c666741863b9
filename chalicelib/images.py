import os
import random
import re
import string
import time
from io import BytesIO
from typing import Dict, Optional, Tuple

from PIL import Image, UnidentifiedImageError
from requests_toolbelt.multipart.decoder import MultipartDecoder

from chalicelib.constants.constants import ALLOWED_IMAGE_CONTENT_TYPES
from chalicelib.utils import s3 as utils_s3
from chalicelib.utils.exceptions import InvalidUpload
from chalicelib.utils.logger import logger

DEFAULT_MAX_IMG_WIDTH = 1024
DISPOSITION_PARAM_PATTERN = re.compile(r'(\w+)="([^"]*)"')


def max_image_width() -> int:
    return int(os.environ.get('MAX_IMG_WIDTH', DEFAULT_MAX_IMG_WIDTH))


def generate_unique_filename(original_name: str) -> str:
    """ '<unix millis>-<8 random chars>.<original extension>' """
    timestamp = int(time.time() * 1000)
    random_part = ''.join(random.choices(string.ascii_lowercase + string.digits, k=8))
    extension = original_name.rsplit('.', 1)[-1].lower() if '.' in original_name else 'bin'
    return f'{timestamp}-{random_part}.{extension}'


def get_resize_width_height(image: Image.Image, max_width: int) -> Tuple[int, int]:
    width, height = image.size
    divider = max([width, height]) / max_width
    if divider <= 1:
        return width, height
    return int(width / divider), int(height / divider)


def compress_image(image_file_obj: BytesIO) -> bytes:
    try:
        image: Image.Image = Image.open(image_file_obj)
        image.load()
    except (UnidentifiedImageError, OSError) as error:
        raise InvalidUpload('The uploaded file is not a valid image') from error
    image = image.convert('RGB')
    image = image.resize(size=get_resize_width_height(image, max_image_width()))

    buffer = BytesIO()
    image.save(buffer, format='JPEG', optimize=True, quality=85)
    return buffer.getvalue()


def _part_name_and_filename(part) -> Tuple[Optional[str], Optional[str]]:
    disposition = part.headers.get(b'Content-Disposition', b'').decode('utf-8')
    params = dict(DISPOSITION_PARAM_PATTERN.findall(disposition))
    return params.get('name'), params.get('filename')


def parse_multipart_request_data(current_request) -> Dict:
    """
    Fields of a multipart/form-data body: text fields as str, the uploaded
    file (form field 'file') under 'file' with its name, type and content
    """
    content_type = current_request.headers.get('content-type', '')
    if not content_type.startswith('multipart/form-data'):
        raise InvalidUpload('Expected a multipart/form-data request')
    decoder = MultipartDecoder(current_request.raw_body, content_type)
    form = {}
    for part in decoder.parts:
        name, filename = _part_name_and_filename(part)
        if name is None:
            continue
        if filename is not None:
            form[name] = {
                'file_name': filename,
                'content_type': part.headers.get(b'Content-Type', b'application/octet-stream').decode('utf-8'),
                'content': part.content
            }
        else:
            form[name] = part.text
    logger.debug(f'parse_multipart_request_data ::: fields={list(form.keys())}')
    return form


def get_uploaded_file(form: Dict) -> Dict:
    uploaded = form.get('file')
    if not isinstance(uploaded, dict) or not uploaded.get('content'):
        raise InvalidUpload('No file was uploaded')
    if uploaded['content_type'] not in ALLOWED_IMAGE_CONTENT_TYPES:
        raise InvalidUpload(f"Files of type {uploaded['content_type']} are not allowed")
    return uploaded


def upload_image(content: bytes, file_name: str, folder_path: str) -> Dict:
    """ Compresses the image and stores it under folder_path, returns its storage path and url """
    compressed = compress_image(BytesIO(content))
    unique_name = generate_unique_filename(file_name).rsplit('.', 1)[0] + '.jpg'
    path = f'{folder_path}/{unique_name}'.replace('//', '/')
    utils_s3.upload_file_to_s3(compressed, path, 'image/jpeg')
    url = utils_s3.get_file_url(path)
    logger.info(f'upload_image ::: {path=} uploaded')
    return {'path': path, 'url': url}
