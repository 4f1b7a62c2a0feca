"""cecanon Quickstart — structured-mode CloudEvent to binary mode and back"""

from cecanon import JsonPayloadConverter, MessageBuilder, get_source, get_type, to_canonical, to_structured

converter = JsonPayloadConverter()

incoming = (
    MessageBuilder.with_payload(
        b'{"specversion": "1.0", "id": "A234-1234-1234", "source": "/mycontext",'
        b' "type": "com.example.someevent", "data": {"msg": "hi"}}'
    )
    .set_header("contentType", "application/cloudevents+json")
    .build()
)

binary = to_canonical(incoming, converter)
print(f"CloudEvent: {get_type(binary)} from {get_source(binary).geturl()}, data: {binary.payload}")

structured = to_structured(binary, converter)
print(f"Structured again: {structured.payload.decode('utf-8')}")
