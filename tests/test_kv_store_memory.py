import unittest

from segment_weather.kv_store import InMemoryKeyValueStore


class TestInMemoryKeyValueStore(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.store = InMemoryKeyValueStore()

    async def test_set_and_get(self):
        await self.store.set("weather_data_a", {"cachedAt": 1, "data": {"temperature": 10.0}})
        self.assertEqual(await self.store.get("weather_data_a"), {"cachedAt": 1, "data": {"temperature": 10.0}})

    async def test_get_missing_returns_none(self):
        self.assertIsNone(await self.store.get("missing"))

    async def test_values_are_copied(self):
        value = {"data": {"temperature": 10.0}}
        await self.store.set("k", value)
        value["data"]["temperature"] = 99.0
        fetched = await self.store.get("k")
        self.assertEqual(fetched["data"]["temperature"], 10.0)
        fetched["data"]["temperature"] = 50.0
        self.assertEqual((await self.store.get("k"))["data"]["temperature"], 10.0)

    async def test_remove_ignores_missing_keys(self):
        await self.store.set("a", {"x": 1})
        await self.store.remove(["a", "never-set"])
        self.assertEqual(len(self.store), 0)

    async def test_scan_filters_by_prefix(self):
        await self.store.set("weather_data_1", {})
        await self.store.set("weather_data_2", {})
        await self.store.set("session:1", {})
        self.assertEqual(sorted(await self.store.scan("weather_data_")), ["weather_data_1", "weather_data_2"])

    async def test_close_drops_items(self):
        await self.store.set("a", {"x": 1})
        await self.store.close()
        self.assertEqual(len(self.store), 0)


if __name__ == "__main__":
    unittest.main()
