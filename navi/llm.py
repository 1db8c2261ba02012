from typing import Iterator

from llama_cpp import Llama

import config as cfg

model: Llama | None = None
loaded_path: str | None = None


def init(model_path: str = cfg.LANGUAGE_MODEL):
	global model, loaded_path
	model = Llama(
	    model_path,
	    n_gpu_layers=-1,  # offload everything the GPU can take
	    # n_ctx=2048, # Uncomment to increase the context window
	    verbose=False)
	loaded_path = model_path


def unload():
	global model, loaded_path
	if model is None:
		return
	model.close()
	model = None
	loaded_path = None


def generate_stream(prompt: str,
                    sys_input: str = '',
                    model_path: str = cfg.LANGUAGE_MODEL,
                    temperature: float = 0.7,
                    max_tokens: int = 128) -> Iterator[str]:
	"""Yields the completion for `prompt` as text chunks."""
	if model is None or loaded_path != model_path:
		unload()
		init(model_path)

	messages = [{'role': 'user', 'content': prompt}]
	if sys_input:
		messages.insert(0, {'role': 'system', 'content': sys_input})

	stream = model.create_chat_completion(messages=messages,
	                                      max_tokens=max_tokens,
	                                      temperature=temperature,
	                                      stream=True)
	for chunk in stream:
		content = chunk['choices'][0]['delta'].get('content')
		if content:
			yield content
