from arns_migrate import env
from arns_migrate.config import AoDatasourceConfig
from arns_migrate.config import HttpConfig
from arns_migrate.datasources.ao import AoDatasource

env.set_test()

CONTENT_REFERENCE = 'bNbA3TEQVL60xlgCcqdz4ZPHFZ711cZ3hmkpGttDt_U'
CONTENT_URL = f'https://sub.arweave.net/{CONTENT_REFERENCE}'


def create_ao_datasource(batch_size: int | None = None) -> AoDatasource:
    config = AoDatasourceConfig(
        http=HttpConfig(
            batch_size=batch_size,
            retry_count=0,
        ),
    )
    config._name = 'ao'
    return AoDatasource(config)
