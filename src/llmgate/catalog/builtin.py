"""Built-in provider catalogs.

Pure builder functions returning each provider's static base URL, API
protocol and model list. Providers with live discovery use these lists as
their fallback catalog.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from .types import (
    ANTHROPIC_MESSAGES,
    OLLAMA,
    OPENAI_COMPLETIONS,
    ModelCost,
    ModelDefinition,
    ProviderConfig,
)

MINIMAX_BASE_URL = "https://api.minimax.io/anthropic"
MINIMAX_OAUTH_PLACEHOLDER = "minimax-oauth"
# MiniMax does not publish public rates
MINIMAX_API_COST = ModelCost(input=15, output=60, cache_read=2, cache_write=10)

MOONSHOT_BASE_URL = "https://api.moonshot.ai/v1"
QWEN_PORTAL_BASE_URL = "https://portal.qwen.ai/v1"
QWEN_PORTAL_OAUTH_PLACEHOLDER = "qwen-oauth"
XIAOMI_BASE_URL = "https://api.xiaomimimo.com/anthropic"
VENICE_BASE_URL = "https://api.venice.ai/api/v1"
OLLAMA_BASE_URL = "http://127.0.0.1:11434"
VLLM_BASE_URL = "http://127.0.0.1:8000/v1"
TOGETHER_BASE_URL = "https://api.together.xyz/v1"
HUGGINGFACE_BASE_URL = "https://router.huggingface.co/v1"
QIANFAN_BASE_URL = "https://qianfan.baidubce.com/v2"
NVIDIA_BASE_URL = "https://integrate.api.nvidia.com/v1"
SILICONFLOW_GLOBAL_BASE_URL = "https://api.siliconflow.com/v1"
SILICONFLOW_CN_BASE_URL = "https://api.siliconflow.cn/v1"
CLOUDFLARE_AI_GATEWAY_URL = "https://gateway.ai.cloudflare.com/v1"

DEEPSEEK_WEB_BASE_URL = "https://chat.deepseek.com"
DOUBAO_WEB_BASE_URL = "https://www.doubao.com"
CLAUDE_WEB_BASE_URL = "https://claude.ai"
CHATGPT_WEB_BASE_URL = "https://chatgpt.com"
QWEN_WEB_BASE_URL = "https://chat.qwen.ai"
YUANBAO_WEB_BASE_URL = "https://yuanbao.tencent.com"
KIMI_WEB_BASE_URL = "https://kimi.moonshot.cn"
GEMINI_WEB_BASE_URL = "https://gemini.google.com"
GROK_WEB_BASE_URL = "https://grok.com"
Z_WEB_BASE_URL = "https://chat.z.ai"
MANUS_WEB_BASE_URL = "https://manus.im"


def _model(
    id: str,
    name: str,
    *,
    reasoning: bool = False,
    input: tuple[str, ...] = ("text",),
    context_window: int = 128000,
    max_tokens: int = 8192,
    cost: ModelCost = ModelCost(),
) -> ModelDefinition:
    return ModelDefinition(
        id=id,
        name=name,
        reasoning=reasoning,
        input=input,
        context_window=context_window,
        max_tokens=max_tokens,
        cost=cost,
    )


def _minimax(id: str, name: str, reasoning: bool, input: tuple[str, ...] = ("text",)):
    return _model(
        id, name, reasoning=reasoning, input=input,
        context_window=200000, max_tokens=8192, cost=MINIMAX_API_COST,
    )


# ============================================================================
# Official APIs
# ============================================================================


def build_minimax_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=MINIMAX_BASE_URL,
        api=ANTHROPIC_MESSAGES,
        models=(
            _minimax("MiniMax-M2.1", "MiniMax M2.1", False),
            _minimax("MiniMax-M2.1-lightning", "MiniMax M2.1 Lightning", False),
            _minimax("MiniMax-VL-01", "MiniMax VL 01", False, ("text", "image")),
            _minimax("MiniMax-M2.5", "MiniMax M2.5", True),
            _minimax("MiniMax-M2.5-Lightning", "MiniMax M2.5 Lightning", True),
        ),
    )


def build_minimax_portal_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=MINIMAX_BASE_URL,
        api=ANTHROPIC_MESSAGES,
        models=(
            _minimax("MiniMax-M2.1", "MiniMax M2.1", False),
            _minimax("MiniMax-M2.5", "MiniMax M2.5", True),
        ),
    )


def build_moonshot_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=MOONSHOT_BASE_URL,
        api=OPENAI_COMPLETIONS,
        models=(_model("kimi-k2.5", "Kimi K2.5", context_window=256000),),
    )


def build_qwen_portal_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=QWEN_PORTAL_BASE_URL,
        api=OPENAI_COMPLETIONS,
        models=(
            _model("coder-model", "Qwen Coder"),
            _model("vision-model", "Qwen Vision", input=("text", "image")),
        ),
    )


def build_xiaomi_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=XIAOMI_BASE_URL,
        api=ANTHROPIC_MESSAGES,
        models=(_model("mimo-v2-flash", "Xiaomi MiMo V2 Flash", context_window=262144),),
    )


def build_venice_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=VENICE_BASE_URL,
        api=OPENAI_COMPLETIONS,
        models=(
            _model("llama-3.3-70b", "Llama 3.3 70B", context_window=65536),
            _model("qwen3-235b", "Qwen3 235B", reasoning=True, context_window=131072),
            _model("mistral-31-24b", "Mistral 3.1 24B", input=("text", "image"), context_window=131072),
        ),
    )


def build_ollama_provider(base_url: str = OLLAMA_BASE_URL) -> ProviderConfig:
    return ProviderConfig(
        base_url=base_url,
        api=OLLAMA,
        models=(_model("llama3.3", "llama3.3"),),
    )


def build_vllm_provider(base_url: str = VLLM_BASE_URL) -> ProviderConfig:
    return ProviderConfig(
        base_url=base_url,
        api=OPENAI_COMPLETIONS,
        models=(_model("default", "vLLM default model"),),
    )


def build_together_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=TOGETHER_BASE_URL,
        api=OPENAI_COMPLETIONS,
        models=(
            _model("meta-llama/Llama-3.3-70B-Instruct-Turbo", "Llama 3.3 70B Instruct Turbo",
                   context_window=131072, cost=ModelCost(input=0.88, output=0.88)),
            _model("deepseek-ai/DeepSeek-R1", "DeepSeek R1", reasoning=True,
                   context_window=163840, cost=ModelCost(input=3, output=7)),
            _model("Qwen/Qwen2.5-72B-Instruct-Turbo", "Qwen 2.5 72B Instruct Turbo",
                   context_window=131072, cost=ModelCost(input=1.2, output=1.2)),
        ),
    )


def build_huggingface_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=HUGGINGFACE_BASE_URL,
        api=OPENAI_COMPLETIONS,
        models=(
            _model("deepseek-ai/DeepSeek-R1", "DeepSeek R1", reasoning=True, context_window=131072),
            _model("meta-llama/Llama-3.3-70B-Instruct", "Llama 3.3 70B Instruct", context_window=131072),
            _model("Qwen/Qwen3-235B-A22B", "Qwen3 235B A22B", reasoning=True, context_window=131072),
        ),
    )


def build_qianfan_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=QIANFAN_BASE_URL,
        api=OPENAI_COMPLETIONS,
        models=(
            _model("deepseek-v3.2", "DEEPSEEK V3.2", reasoning=True,
                   context_window=98304, max_tokens=32768),
            _model("ernie-5.0-thinking-preview", "ERNIE-5.0-Thinking-Preview", reasoning=True,
                   input=("text", "image"), context_window=119000, max_tokens=64000),
        ),
    )


def build_nvidia_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=NVIDIA_BASE_URL,
        api=OPENAI_COMPLETIONS,
        models=(
            _model("nvidia/llama-3.1-nemotron-70b-instruct", "NVIDIA Llama 3.1 Nemotron 70B Instruct",
                   context_window=131072, max_tokens=4096),
            _model("meta/llama-3.3-70b-instruct", "Meta Llama 3.3 70B Instruct",
                   context_window=131072, max_tokens=4096),
            _model("nvidia/mistral-nemo-minitron-8b-8k-instruct",
                   "NVIDIA Mistral NeMo Minitron 8B Instruct",
                   context_window=8192, max_tokens=2048),
        ),
    )


def build_siliconflow_provider(base_url: str = SILICONFLOW_GLOBAL_BASE_URL) -> ProviderConfig:
    return ProviderConfig(
        base_url=base_url,
        api=OPENAI_COMPLETIONS,
        models=(
            _model("deepseek-ai/DeepSeek-V3", "DeepSeek V3", context_window=65536),
            _model("deepseek-ai/DeepSeek-R1", "DeepSeek R1", reasoning=True, context_window=65536),
            _model("Qwen/Qwen2.5-72B-Instruct", "Qwen 2.5 72B Instruct", context_window=32768),
        ),
    )


def build_cloudflare_ai_gateway_provider(account_id: str, gateway_id: str) -> Optional[ProviderConfig]:
    account_id = account_id.strip()
    gateway_id = gateway_id.strip()
    if not account_id or not gateway_id:
        return None
    return ProviderConfig(
        base_url=f"{CLOUDFLARE_AI_GATEWAY_URL}/{account_id}/{gateway_id}/anthropic",
        api=ANTHROPIC_MESSAGES,
        models=(
            _model("claude-sonnet-4-5", "Claude Sonnet 4.5 (AI Gateway)", reasoning=True,
                   input=("text", "image"), context_window=200000, max_tokens=64000,
                   cost=ModelCost(input=3, output=15, cache_read=0.3, cache_write=3.75)),
        ),
    )


# ============================================================================
# Web providers (browser-session backed)
# ============================================================================


def build_deepseek_web_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=DEEPSEEK_WEB_BASE_URL,
        api="deepseek-web",
        models=(
            _model("deepseek-chat", "DeepSeek V3 (Web)", context_window=64000),
            _model("deepseek-reasoner", "DeepSeek R1 (Web)", reasoning=True, context_window=64000),
            _model("deepseek-chat-search", "DeepSeek V3 (Web + Search)", context_window=64000),
            _model("deepseek-reasoner-search", "DeepSeek R1 (Web + Search)", reasoning=True,
                   context_window=64000),
        ),
    )


def build_doubao_web_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=DOUBAO_WEB_BASE_URL,
        api="doubao-web",
        models=(
            _model("doubao-seed-2.0", "Doubao-Seed 2.0 (Web)", reasoning=True, context_window=64000),
            _model("doubao-pro", "Doubao Pro (Web)", context_window=64000),
        ),
    )


def build_claude_web_provider() -> ProviderConfig:
    vision = ("text", "image")
    return ProviderConfig(
        base_url=CLAUDE_WEB_BASE_URL,
        api="claude-web",
        models=(
            _model("claude-3-5-sonnet-20241022", "Claude 3.5 Sonnet (Web)", input=vision,
                   context_window=200000),
            _model("claude-3-opus-20240229", "Claude 3 Opus (Web)", input=vision,
                   context_window=200000),
            _model("claude-3-haiku-20240307", "Claude 3 Haiku (Web)", input=vision,
                   context_window=200000),
        ),
    )


def build_chatgpt_web_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=CHATGPT_WEB_BASE_URL,
        api="chatgpt-web",
        models=(
            _model("gpt-4", "GPT-4 (Web)", input=("text", "image"), max_tokens=4096),
            _model("gpt-4-turbo", "GPT-4 Turbo (Web)", input=("text", "image"), max_tokens=4096),
            _model("gpt-3.5-turbo", "GPT-3.5 Turbo (Web)", context_window=16000, max_tokens=4096),
        ),
    )


def build_qwen_web_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=QWEN_WEB_BASE_URL,
        api="qwen-web",
        models=(
            _model("qwen-max", "Qwen Max (Web)", context_window=32000),
            _model("qwen-plus", "Qwen Plus (Web)", context_window=32000),
            _model("qwen-turbo", "Qwen Turbo (Web)", context_window=32000),
        ),
    )


def build_yuanbao_web_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=YUANBAO_WEB_BASE_URL,
        api="yuanbao-web",
        models=(
            _model("hunyuan-pro", "Hunyuan Pro (Web)", context_window=32000, max_tokens=4096),
            _model("hunyuan-standard", "Hunyuan Standard (Web)", context_window=32000,
                   max_tokens=4096),
        ),
    )


def build_kimi_web_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=KIMI_WEB_BASE_URL,
        api="kimi-web",
        models=(
            _model("moonshot-v1-8k", "Moonshot v1 8K (Web)", context_window=8000, max_tokens=4096),
            _model("moonshot-v1-32k", "Moonshot v1 32K (Web)", context_window=32000, max_tokens=4096),
            _model("moonshot-v1-128k", "Moonshot v1 128K (Web)", context_window=128000,
                   max_tokens=4096),
        ),
    )


def build_gemini_web_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=GEMINI_WEB_BASE_URL,
        api="gemini-web",
        models=(
            _model("gemini-pro", "Gemini Pro (Web)", input=("text", "image"), context_window=32000),
            _model("gemini-ultra", "Gemini Ultra (Web)", input=("text", "image"), context_window=32000),
        ),
    )


def build_grok_web_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=GROK_WEB_BASE_URL,
        api="grok-web",
        models=(
            _model("grok-1", "Grok 1 (Web)", context_window=32000, max_tokens=4096),
            _model("grok-2", "Grok 2 (Web)", context_window=32000, max_tokens=4096),
        ),
    )


def build_z_web_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=Z_WEB_BASE_URL,
        api="z-web",
        models=(
            _model("glm-4", "GLM-4 (Web)", max_tokens=4096),
            _model("glm-3-turbo", "GLM-3 Turbo (Web)", max_tokens=4096),
        ),
    )


def build_manus_web_provider() -> ProviderConfig:
    return ProviderConfig(
        base_url=MANUS_WEB_BASE_URL,
        api="manus-web",
        models=(_model("manus-1", "Manus 1 (Web)", context_window=32000, max_tokens=4096),),
    )


# Always-on web providers, in resolution order
WEB_PROVIDER_BUILDERS: Dict[str, Callable[[], ProviderConfig]] = {
    "deepseek-web": build_deepseek_web_provider,
    "doubao-web": build_doubao_web_provider,
    "claude-web": build_claude_web_provider,
    "chatgpt-web": build_chatgpt_web_provider,
    "qwen-web": build_qwen_web_provider,
    "yuanbao-web": build_yuanbao_web_provider,
    "kimi-web": build_kimi_web_provider,
    "gemini-web": build_gemini_web_provider,
    "grok-web": build_grok_web_provider,
    "z-web": build_z_web_provider,
    "manus-web": build_manus_web_provider,
}


def is_web_provider(provider_id: str) -> bool:
    return provider_id in WEB_PROVIDER_BUILDERS


__all__ = [
    "MINIMAX_OAUTH_PLACEHOLDER",
    "QWEN_PORTAL_OAUTH_PLACEHOLDER",
    "OLLAMA_BASE_URL",
    "VLLM_BASE_URL",
    "SILICONFLOW_GLOBAL_BASE_URL",
    "SILICONFLOW_CN_BASE_URL",
    "CHATGPT_WEB_BASE_URL",
    "WEB_PROVIDER_BUILDERS",
    "is_web_provider",
    "build_minimax_provider",
    "build_minimax_portal_provider",
    "build_moonshot_provider",
    "build_qwen_portal_provider",
    "build_xiaomi_provider",
    "build_venice_provider",
    "build_ollama_provider",
    "build_vllm_provider",
    "build_together_provider",
    "build_huggingface_provider",
    "build_qianfan_provider",
    "build_nvidia_provider",
    "build_siliconflow_provider",
    "build_cloudflare_ai_gateway_provider",
]
