"""Build the inventory codecs at runtime and store a record."""

from pathlib import Path

from tuplecodec.generator import generate_codecs, parse_schemas

codecs = generate_codecs(parse_schemas((Path(__file__).parent / "inventory.tc").read_text()))
sku_codec = codecs["Sku"]
item_codec = codecs["Item"]

Sku = sku_codec.record_type
Item = item_codec.record_type

item = Item(
    sku=Sku(vendor=12, code=40001),
    name="M3 hex bolt",
    location=(2, 5, 310),
    price_cents=45,
    tags=b"\x01\x07",
)

key = sku_codec.encode(item.sku)
value = item_codec.encode(item)

print(f"key   {sku_codec.identity} {sku_codec.width}: {key.hex()}")
print(f"value {item_codec.identity} {item_codec.width}: {value.hex()}")
print(item_codec.decode(value))
