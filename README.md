# azchess

A small AlphaZero-style chess toolkit: encode positions as stacks of 8x8 planes, evaluate them with a compact numpy network, search with Monte Carlo tree search, and run a threaded self-play training loop.

## Modules

- `azchess.encoding` – `PositionEncoder.encode(fen, previous_positions)` returns a `(117, 64)` boolean numpy array: twelve piece planes, two repetition planes, side to move and four castling-rights planes for the current position, then twelve piece planes and two repetition planes for each of up to eight earlier positions (a repetition counts matches of the piece placement among the eight positions before it). `Plane` names the indices of the current-position planes. `flatten_planes` turns a plane stack into a flat `float32` vector of 0s and 1s. After encoding, the encoder holds `total_move_count` and `no_progress_move_count` from the FEN, and `format_planes(start_plane, end_plane)` / `print_planes(...)` render labelled 0/1 grids followed by those two counts. A non-numeric move-count field raises `ValueError`.
- `azchess.network` – `NeuralNetwork(input_size, hidden_size, policy_size, seed=None)`: one hidden ReLU layer feeding a `softmax` policy head and a win/draw/loss head. `evaluate` uses the first `input_size` values of its input. `train` takes one gradient step on a batch and returns the cross-entropy loss measured before the step. `save` writes three little-endian int32 sizes followed by the float32 weights; `NeuralNetwork.load(filename)` reads such a file back and raises `ValueError` if it is truncated.
- `azchess.board` – `ChessMove(from_square, to_square, promotion="")` with squares 0 (a1) to 63 (h8) and `uci()` giving strings such as `e2e4`. `ChessBoard` is a simulated board: it starts at the standard opening position, each move advances through a fixed cycle of sample positions shared by all boards, and every position gets 10–30 random square-pair moves. `make_move` raises `IllegalMoveError` for a move not in `legal_moves`; `result()` is a random 1, 0 or -1.
- `azchess.mcts` – `MCTSNode` (policy-weighted UCB selection, random expansion scored by the network, back-up with alternating sign) and `MCTS(network, num_simulations=800, exploration_weight=1.0)`, whose `search` returns the most visited root move.
- `azchess.training` – `TrainingExample`, `move_to_index`, `SelfPlayWorker` and `TrainingManager`, which play self-play games on worker threads, gather one example per move, train the network on them and save a weights file after each iteration.

## Encoding a position

```python
from azchess.encoding import PositionEncoder, Plane, flatten_planes

encoder = PositionEncoder()
start = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
after_e4 = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"

planes = encoder.encode(after_e4, [start])
print(planes.shape)                         # (117, 64)
print(planes[Plane.COLOR_TO_MOVE].any())    # False: black to move

encoder.print_planes(0, 19)                 # current-position planes as 0/1 grids
inputs = flatten_planes(planes)             # 117 * 64 floats
```

## Searching for a move

```python
from azchess.board import ChessBoard
from azchess.mcts import MCTS
from azchess.network import NeuralNetwork

network = NeuralNetwork(117 * 64, 64, 1858, seed=1)
move = MCTS(network, 50).search(ChessBoard())
print(move.uci())
```

## Self-play training

The package installs one command:

```
azchess --max-moves 20 --games 8 --threads 2 --simulations 50 --iterations 2
```

Options: `--iterations` (default 10), `--games` per iteration (default 100, split evenly over the threads), `--threads` (default 4), `--hidden` layer size (default 256), `--simulations` per move (default 800), `--max-moves` per game (default unlimited), `--output-dir` (default the current directory) and `--seed`. The network takes `19 * 64` inputs, so it sees the current-position planes only. After every iteration the weights are saved as `network_iter_<n>.bin` in the output directory.

## What this package does not do

`ChessBoard` knows no chess rules: its moves are random square pairs and its positions come from a fixed sample list, so the search and training run on simulated games only. Because every simulated position has at least ten moves, a game never ends by itself; give `--max-moves` (or `max_moves=` to `SelfPlayWorker` / `TrainingManager`) or self-play will not finish. There is no engine protocol or interface for playing against the network.