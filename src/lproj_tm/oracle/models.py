from __future__ import annotations

from enum import Enum


class OpenAIModel(str, Enum):
    # 4.x / 4o
    GPT_4 = "gpt-4"
    GPT_4O = "gpt-4o"
    GPT_4O_MINI = "gpt-4o-mini"
    GPT_4_1 = "gpt-4.1"
    GPT_4_1_MINI = "gpt-4.1-mini"

    # 5.x
    GPT_5 = "gpt-5"
    GPT_5_MINI = "gpt-5-mini"


def model_name(model) -> str:
    """统一 model 取值：支持 Enum / str / None。"""
    if model is None:
        return OpenAIModel.GPT_4O.value
    if isinstance(model, Enum):
        return model.value
    return str(model).strip() or OpenAIModel.GPT_4O.value
