#!/usr/bin/env python3
"""
driven-micro Job Pipeline Demo

A document-processing service built on the dispatch core:
- SubmitDocument command creates a Document aggregate
- DocumentSubmitted event triggers a Summarize command
- Summarize calls an external model client and records the result
- DocumentSummarized is a terminal event (no handler)

Run once from the command line, or pass --serve to expose the HTTP entry point.
"""

import asyncio
import sys
from typing import Any

from drivenmicro import (
    TYPES,
    Command,
    Domain,
    Event,
    FrameworkConfig,
    Handler,
    MicroServiceRequest,
    UnitOfWork,
    bootstrap,
)
from drivenmicro.adapters import ApiConfig, create_api_entrypoint, start_api_server
from drivenmicro.persistence.memory import MemoryStore, bind_memory_persistence


# 🎯 DOMAIN LAYER
class Document(Domain):
    """Document moving through the summarization pipeline"""
    status: str = "submitted"
    summary: str = ""

    @classmethod
    def submit(cls, external_job_id: str, text: str) -> 'Document':
        document = cls(external_job_id=external_job_id, data={"text": text})
        document.add_event(DocumentSubmitted(domain=document))
        return document

    def summarized(self, summary: str) -> None:
        self.summary = summary
        self.status = "summarized"
        self.add_event(DocumentSummarized(domain=self))


class SubmitDocument(Command):
    text: str


class Summarize(Command):
    pass


class DocumentSubmitted(Event):
    pass


class DocumentSummarized(Event):
    pass


class DocumentRequest(MicroServiceRequest):
    text: str


# 🔌 EXTERNAL CLIENT
class ModelClient:
    """Stand-in for a hosted language model"""

    async def summarize(self, text: str) -> str:
        await asyncio.sleep(0)
        words = text.split()
        return " ".join(words[:8]) + ("..." if len(words) > 8 else "")


# 📋 HANDLERS
class SubmitDocumentHandler(Handler[SubmitDocument]):
    def __init__(self, uow: UnitOfWork):
        super().__init__(uow)

    async def _handle(self, message: SubmitDocument, *args: Any) -> None:
        await self.uow.add(Document.submit(message.external_job_id, message.text))


class RequestSummary(Handler[DocumentSubmitted]):
    async def _handle(self, message: DocumentSubmitted, *args: Any) -> None:
        self.add_messages([Summarize(external_job_id=message.domain.external_job_id)])


class SummarizeHandler(Handler[Summarize]):
    def __init__(self, uow: UnitOfWork, client: ModelClient):
        super().__init__(uow)
        self.client = client

    async def _handle(self, message: Summarize, *args: Any) -> None:
        document = await self.uow.get(message.external_job_id)
        document.summarized(await self.client.summarize(document.data["text"]))
        await self.uow.update(document)


def build_bus(store: MemoryStore):
    def dependencies(container):
        bind_memory_persistence(container, store)
        container.register_singleton(ModelClient, alias=TYPES.LLMClient)

    return bootstrap(FrameworkConfig(
        command_handlers={SubmitDocument: SubmitDocumentHandler, Summarize: SummarizeHandler},
        event_handlers={DocumentSubmitted: RequestSummary},
        dependencies=dependencies,
    ))


async def demonstrate_pipeline():
    print("🚀 driven-micro Job Pipeline Demo")
    print("=" * 50)

    store = MemoryStore()
    bus = build_bus(store)

    await bus.handle(SubmitDocument(
        external_job_id="doc-1",
        text="Units of work bound every storage session and harvest the events aggregates record",
    ))

    _, payload = store.load("doc-1")
    print(f"   📄 {payload['external_job_id']}: {payload['status']}")
    print(f"   📝 Summary: {payload['summary']}")


def serve():
    bus = build_bus(MemoryStore())
    app = create_api_entrypoint(ApiConfig(
        message_bus=bus,
        request_constructor=DocumentRequest,
        create_command=lambda request: SubmitDocument(
            external_job_id=request.external_job_id, text=request.text
        ),
    ))
    start_api_server(app)


if __name__ == "__main__":
    if "--serve" in sys.argv:
        serve()
    else:
        asyncio.run(demonstrate_pipeline())
