"""
Test configuration and fixtures
"""
import sys
from pathlib import Path

# Add src to Python path
project_root = Path(__file__).parent.parent
src_path = project_root / "src"
sys.path.insert(0, str(src_path))

import pytest

from saltdao.core.chain import LocalChain
from saltdao.core.contracts.salt_dao import SaltDao
from saltdao.core.contracts.salt_token import SaltToken

UNIT = 10**6

USER1 = "0x" + "11" * 20
USER2 = "0x" + "22" * 20
USER3 = "0x" + "33" * 20
USER4 = "0x" + "44" * 20


@pytest.fixture
def chain():
    """Fresh auto-mining chain clock"""
    return LocalChain()


@pytest.fixture
def salt(chain):
    """Token with 25/40/35 units held by three self-delegated users"""
    token = SaltToken(chain=chain, deployer=USER1)
    token.transfer(USER1, USER2, 40 * UNIT)
    token.transfer(USER1, USER3, 35 * UNIT)
    token.delegate(USER1, USER1)
    token.delegate(USER2, USER2)
    token.delegate(USER3, USER3)
    return token


@pytest.fixture
def salt_dao(chain, salt):
    """DAO wired to the funded token"""
    return SaltDao(chain, salt)


@pytest.fixture
def users():
    return USER1, USER2, USER3, USER4
