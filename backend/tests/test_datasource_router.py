"""
数据源回调路由测试
通过 HTTP 验证消息核心的各个回调命令
"""

import pytest

from core.errors import ErrorCode

DATASOURCE_URL = "/v1/datasource"


async def call(client, cmd, data=None):
    payload = {"cmd": cmd}
    if data is not None:
        payload["data"] = data
    return await client.post(DATASOURCE_URL, json=payload)


@pytest.mark.asyncio
class TestDatasourceCommands:
    """回调命令测试"""

    async def test_system_uids(self, client, im_data):
        response = await call(client, "getSystemUIDs")

        assert response.status_code == 200
        body = response.json()
        assert body["code"] == 0
        assert body["data"] == ["kefu", "notice"]

    async def test_whitelist_mutual_friends_only(self, client, im_data):
        response = await call(client, "getWhitelist", {"channel_id": "alice", "channel_type": 1})

        assert response.status_code == 200
        assert response.json()["data"] == ["bob"]

    async def test_whitelist_unrestricted_channel(self, client, im_data):
        response = await call(client, "getWhitelist", {"channel_id": "g1", "channel_type": 2})

        assert response.status_code == 200
        assert response.json()["data"] == []

    async def test_channel_info(self, client, im_data):
        response = await call(client, "getChannelInfo", {
            "channel_id": "alice", "channel_type": 1, "login_uid": "bob"
        })

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["channel"] == {"channel_id": "alice", "channel_type": 1}
        assert data["name"] == "Alice"
        assert data["logo"] == "users/alice/avatar"
        assert data["mute"] == 1
        assert data["stick"] == 1
        assert data["follow"] == 1
        assert data["be_blacklist"] == 1
        assert data["online"] == 1
        assert data["extra"]["short_no"] == "10001"
        assert data["extra"]["chat_pwd_on"] == 1

    async def test_channel_info_not_found(self, client, im_data):
        """测试没有模块处理的频道类型"""
        response = await call(client, "getChannelInfo", {"channel_id": "g1", "channel_type": 2})

        assert response.status_code == 404
        assert response.json()["code"] == ErrorCode.CHANNEL_NOT_FOUND

    async def test_channel_info_missing_user(self, client, im_data):
        """测试个人频道对应的用户不存在"""
        response = await call(client, "getChannelInfo", {"channel_id": "ghost", "channel_type": 1})

        assert response.status_code == 500
        assert response.json()["code"] == ErrorCode.DATA_INTEGRITY_ERROR

    async def test_devices(self, client, im_data):
        app_id, pc_id = im_data["device_ids"]
        response = await call(client, "getDevices", {"ids": [pc_id, 99999]})

        assert response.status_code == 200
        devices = response.json()["data"]
        assert len(devices) == 1
        assert devices[0]["id"] == pc_id
        assert devices[0]["device_model"] == "MacBook"

    async def test_devices_empty(self, client, im_data):
        response = await call(client, "getDevices", {"ids": []})

        assert response.json()["data"] == []

    async def test_friends(self, client, im_data):
        response = await call(client, "getFriends", {"uid": "alice"})

        assert response.status_code == 200
        friends = {f["to_uid"]: f for f in response.json()["data"]}
        assert set(friends) == {"bob", "carol"}
        assert friends["bob"]["remark"] == "老鲍"
        assert friends["carol"]["is_alone"] == 1


@pytest.mark.asyncio
class TestDatasourceValidation:
    """参数校验测试"""

    async def test_unknown_command(self, client):
        response = await call(client, "getGroupMembers")

        assert response.status_code == 400
        assert response.json()["code"] == ErrorCode.VALIDATION_ERROR

    async def test_missing_arguments(self, client):
        response = await call(client, "getChannelInfo", {"channel_id": "alice"})

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == ErrorCode.VALIDATION_ERROR
        assert body["data"]["errors"][0]["field"] == "channel_type"

    async def test_missing_cmd(self, client):
        response = await client.post(DATASOURCE_URL, json={})

        assert response.status_code == 400


@pytest.mark.asyncio
class TestSystemRoutes:
    """模块信息与健康检查"""

    async def test_list_modules(self, client):
        response = await client.get("/v1/modules")

        assert response.status_code == 200
        modules = {m["name"]: m for m in response.json()["data"]}
        assert {"user", "friend", "user_manager"} <= set(modules)
        assert modules["user"]["has_sql"] is True
        assert modules["friend"]["identity_source"] == ["has_data", "whitelist"]
        assert modules["user_manager"]["business_data_source"] is None

    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["components"]["registry"]["status"] == "healthy"

    async def test_liveness(self, client):
        response = await client.get("/health/live")

        assert response.json() == {"status": "alive"}

    async def test_readiness(self, client):
        response = await client.get("/health/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready"}

    async def test_api_info(self, client):
        response = await client.get("/api")

        assert "user" in [m["name"] for m in response.json()["modules"]]
