import os
import tempfile

from chalicelib.utils import boto_clients
from chalicelib.utils.logger import logger


def images_bucket():
    return os.environ["IMAGES_BUCKET_NAME"]


def images_base_url():
    base_url = os.environ.get('IMAGES_BASE_URL')
    if base_url:
        return base_url.rstrip('/')
    return f'https://{images_bucket()}.s3.{boto_clients.main_boto_region}.amazonaws.com'


def get_file_url(file_path: str) -> str:
    return f'{images_base_url()}/{file_path}'


def upload_file_to_s3(body: bytes, file_path: str, content_type: str) -> str:
    with tempfile.TemporaryFile() as tf:
        tf.write(body)
        tf.seek(0)
        boto_clients.s3_client.upload_fileobj(tf, images_bucket(), file_path, ExtraArgs={'ContentType': content_type})
    logger.info(f'upload_file_to_s3 ::: SUCCESS, {file_path=}')
    return file_path


def get_download_url(file_path: str, expires_in: int = 3600) -> str:
    url = boto_clients.s3_client.generate_presigned_url(
        'get_object',
        Params={'Bucket': images_bucket(), 'Key': file_path},
        ExpiresIn=expires_in
    )
    logger.debug(f'get_download_url ::: {file_path=}, {expires_in=}')
    return url


def delete_file_from_s3(file_path: str) -> None:
    boto_clients.s3_client.delete_object(Bucket=images_bucket(), Key=file_path)
    logger.info(f'delete_file_from_s3 ::: SUCCESS, {file_path=}')
